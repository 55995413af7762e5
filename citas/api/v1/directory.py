from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import Caller
from ...api.deps import get_current_caller, get_staff_caller
from ...services.directory_service import DirectoryService
from ...schemas.directory import ClientEntry, EmployeeEntry

router = APIRouter(prefix="/directory", tags=["Directory"])

@router.get("/employees", response_model=List[EmployeeEntry])
async def list_employees(
    db: Session = Depends(get_db),
    _: Caller = Depends(get_current_caller)
):
    """Specialists a customer can book with."""
    return DirectoryService(db).list_employees()

@router.get("/clients", response_model=List[ClientEntry])
async def list_clients(
    db: Session = Depends(get_db),
    _: Caller = Depends(get_staff_caller)
):
    """Clients staff can book on behalf of (staff only)."""
    return DirectoryService(db).list_clients()

@router.get("/companies", response_model=List[str])
async def list_companies(
    db: Session = Depends(get_db),
    _: Caller = Depends(get_staff_caller)
):
    return DirectoryService(db).list_companies()

@router.get("/companies/{company}/clients", response_model=List[ClientEntry])
async def list_clients_by_company(
    company: str,
    db: Session = Depends(get_db),
    _: Caller = Depends(get_staff_caller)
):
    return DirectoryService(db).list_clients_by_company(company)
