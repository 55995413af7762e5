from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError
from ..models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

# SQLSTATE raised by PostgreSQL for exclusion constraint violations
EXCLUSION_VIOLATION = "23P01"

class ConflictChecker:
    """Finds approved slots of an employee that overlap a proposed slot.

    Slots are half-open, so a booking ending at 11:00 and one starting at
    11:00 do not collide. Pending and rejected appointments never block.
    The result is advisory; the exclusion constraint on PostgreSQL has the
    final word.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_conflicts(
        self,
        employee_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.employee_id == employee_id,
            Appointment.status == AppointmentStatus.APPROVED,
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )

        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)

        return query.all()

    def has_conflict(
        self,
        employee_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        conflicts = self.find_conflicts(employee_id, start_time, end_time, exclude_id)
        if conflicts:
            logger.info(
                f"Slot {start_time.isoformat()} - {end_time.isoformat()} for employee "
                f"{employee_id} overlaps appointments {[c.id for c in conflicts]}"
            )
        return bool(conflicts)

def commit_or_conflict(db: Session) -> None:
    """Commit the session, reporting an exclusion violation as a ConflictError."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        if code == EXCLUSION_VIOLATION:
            logger.warning("Overlapping approved booking rejected by the database")
            raise ConflictError()
        raise
