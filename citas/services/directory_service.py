from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.security import STORED_ROLE_MAP, UserRole
from ..models.appointment import Appointment
from ..models.profile import Profile

STAFF_ROLE_NAMES = [name for name, role in STORED_ROLE_MAP.items() if role != UserRole.CUSTOMER]

class DirectoryService:
    """Read-only lookups of employees, clients and companies for booking forms."""

    def __init__(self, db: Session):
        self.db = db

    def list_employees(self) -> List[Profile]:
        return self.db.query(Profile).filter(
            func.lower(Profile.role).in_(STAFF_ROLE_NAMES),
            Profile.is_active == True
        ).order_by(Profile.full_name.asc()).all()

    def list_clients(self) -> List[Profile]:
        """Profiles that resolve to the customer role, including unset roles."""
        return self.db.query(Profile).filter(
            (Profile.role == None) | func.lower(Profile.role).notin_(STAFF_ROLE_NAMES),
            Profile.is_active == True
        ).order_by(Profile.full_name.asc()).all()

    def list_companies(self) -> List[str]:
        rows = self.db.query(Appointment.company).filter(
            Appointment.company != None,
            Appointment.company != ""
        ).distinct().order_by(Appointment.company.asc()).all()
        return [row[0] for row in rows]

    def list_clients_by_company(self, company: str) -> List[Profile]:
        """Clients with appointments at a company; all clients if it has none."""
        customer_ids = [
            row[0] for row in self.db.query(Appointment.customer_id).filter(
                Appointment.company == company
            ).distinct().all()
        ]

        if not customer_ids:
            return self.list_clients()

        return self.db.query(Profile).filter(
            Profile.id.in_(customer_ids),
            (Profile.role == None) | func.lower(Profile.role).notin_(STAFF_ROLE_NAMES),
            Profile.is_active == True
        ).order_by(Profile.full_name.asc()).all()
