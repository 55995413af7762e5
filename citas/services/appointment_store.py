from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.permissions import can_delete, delete_rule, list_scope, resolve_booking_parties
from ..core.security import Caller, STAFF_ROLES
from ..models.appointment import Appointment, AppointmentStatus
from ..models.profile import Profile
from ..schemas.appointment import AppointmentCreate
from .conflict_checker import ConflictChecker, commit_or_conflict
from .status_machine import StatusMachine

logger = logging.getLogger(__name__)

def to_storage_time(value: datetime) -> datetime:
    """Normalize to naive UTC, the representation stored in the citas table."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def compute_slot(start: datetime, duration_minutes: Optional[int] = None):
    """Return the [start, end) slot for a booking, 60 minutes by default."""
    if duration_minutes is None:
        duration_minutes = settings.DEFAULT_DURATION_MINUTES
    if duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes")

    start = to_storage_time(start)
    return start, start + timedelta(minutes=duration_minutes)

class AppointmentStore:
    def __init__(self, db: Session):
        self.db = db
        self.conflicts = ConflictChecker(db)
        self.status_machine = StatusMachine(db)

    def _require_employee(self, employee_id: int) -> Profile:
        """An employee named by the caller must be an active staff profile."""
        employee = self.db.query(Profile).filter(Profile.id == employee_id).first()
        if not employee or employee.is_active is False or employee.user_role not in STAFF_ROLES:
            raise ValidationError("Employee not found")
        return employee

    def create(self, payload: AppointmentCreate, caller: Caller) -> Appointment:
        """Book a slot for the caller according to their role."""
        if not payload.fecha_consulta:
            raise ValidationError("Date is required")

        parties = resolve_booking_parties(caller, payload.employee_id, payload.user_id)
        if parties.employee_id != caller.id:
            self._require_employee(parties.employee_id)
        start_time, end_time = compute_slot(payload.fecha_consulta, payload.duracion_consulta)

        if self.conflicts.has_conflict(parties.employee_id, start_time, end_time):
            raise ConflictError()

        appointment = Appointment(
            customer_id=parties.customer_id,
            employee_id=parties.employee_id,
            company=payload.empresa,
            consultation_type=payload.tipo_consulta,
            description=payload.descripcion,
            start_time=start_time,
            end_time=end_time,
            modality=payload.modalidad,
            location=payload.direccion,
            status=parties.status,
        )

        self.db.add(appointment)
        commit_or_conflict(self.db)
        self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id} for customer {appointment.customer_id} "
            f"with employee {appointment.employee_id} ({appointment.status.value})"
        )
        return appointment

    def list(self, caller: Caller, filter_employee_id: Optional[int] = None) -> List[Appointment]:
        """Appointments visible to the caller, earliest first."""
        scope = list_scope(caller, filter_employee_id)

        query = self.db.query(Appointment).options(joinedload(Appointment.employee))
        if scope.employee_id is not None:
            query = query.filter(Appointment.employee_id == scope.employee_id)
        if scope.customer_id is not None:
            query = query.filter(Appointment.customer_id == scope.customer_id)
        if scope.approved_only:
            query = query.filter(Appointment.status == AppointmentStatus.APPROVED)

        return query.order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def update_status(self, appointment_id: int, new_status: str, caller: Caller) -> Appointment:
        appointment = self.get(appointment_id)
        if not appointment:
            raise NotFoundError()

        return self.status_machine.transition(appointment, new_status, caller)

    def remove(self, appointment_id: int, caller: Caller) -> bool:
        """Delete an appointment the caller may cancel.

        Returns False when no such appointment exists, which callers treat as
        success. The delete itself is conditioned on the same ownership and
        status rules, so a row that changes status in between is not removed.
        """
        appointment = self.get(appointment_id)
        if not appointment:
            return False

        decision = can_delete(
            caller, appointment.customer_id, appointment.employee_id, appointment.status
        )
        if not decision.allowed:
            raise AuthorizationError(decision.reason)

        owner_column, pending_only = delete_rule(caller)
        query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
        if owner_column:
            query = query.filter(getattr(Appointment, owner_column) == caller.id)
        if pending_only:
            query = query.filter(Appointment.status == AppointmentStatus.PENDING)

        deleted = query.delete(synchronize_session=False)
        self.db.commit()

        if not deleted:
            if self.get(appointment_id) is None:
                return False
            raise AuthorizationError("Forbidden: only pending appointments can be cancelled")

        logger.info(f"Appointment {appointment_id} deleted by {caller.role.value} {caller.id}")
        return True
