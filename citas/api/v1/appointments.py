from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.exceptions import ValidationError
from ...core.security import Caller
from ...api.deps import get_current_caller, booking_rate_limit
from ...services.appointment_store import AppointmentStore
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentListResponse,
    MessageResponse, StatusUpdate
)

router = APIRouter(prefix="/citas", tags=["Appointments"])

def get_store(db: Session = Depends(get_db)) -> AppointmentStore:
    return AppointmentStore(db)

@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    employee_id: Optional[int] = Query(None),
    caller: Caller = Depends(get_current_caller),
    store: AppointmentStore = Depends(get_store)
):
    """List the appointments visible to the caller."""
    appointments = store.list(caller, employee_id)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        isStaff=caller.is_staff
    )

@router.post("", response_model=AppointmentResponse)
async def create_appointment(
    payload: AppointmentCreate,
    caller: Caller = Depends(get_current_caller),
    store: AppointmentStore = Depends(get_store),
    _: None = Depends(booking_rate_limit)
):
    """Book an appointment."""
    appointment = store.create(payload, caller)
    return AppointmentResponse.model_validate(appointment)

@router.put("", response_model=AppointmentResponse)
async def update_appointment_status(
    payload: StatusUpdate,
    caller: Caller = Depends(get_current_caller),
    store: AppointmentStore = Depends(get_store)
):
    """Approve or reject an appointment."""
    if not payload.id or not payload.status:
        raise ValidationError("ID and Status are required")

    appointment = store.update_status(payload.id, payload.status, caller)
    return AppointmentResponse.model_validate(appointment)

@router.delete("", response_model=MessageResponse)
async def delete_appointment(
    request: Request,
    id: Optional[int] = Query(None),
    caller: Caller = Depends(get_current_caller),
    store: AppointmentStore = Depends(get_store)
):
    """Delete an appointment. The id comes from the JSON body or the query string."""
    appointment_id = id
    try:
        body = await request.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("id") is not None:
        appointment_id = body["id"]

    if not appointment_id:
        raise ValidationError("ID is required")

    try:
        appointment_id = int(appointment_id)
    except (TypeError, ValueError):
        raise ValidationError("ID must be an integer")

    store.remove(appointment_id, caller)
    return MessageResponse(message="Deleted successfully")
