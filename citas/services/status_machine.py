from typing import Union
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import AuthorizationError, ConflictError, ValidationError
from ..core.permissions import can_transition
from ..core.security import Caller
from ..models.appointment import Appointment, AppointmentStatus
from .conflict_checker import ConflictChecker, commit_or_conflict

logger = logging.getLogger(__name__)

# pending -> approved | rejected; approved and rejected are terminal
TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED},
    AppointmentStatus.APPROVED: set(),
    AppointmentStatus.REJECTED: set(),
}

class StatusMachine:
    def __init__(self, db: Session):
        self.db = db
        self.conflicts = ConflictChecker(db)

    @staticmethod
    def parse_status(value: Union[str, AppointmentStatus, None]) -> AppointmentStatus:
        """Parse a requested target status, accepting only review outcomes."""
        try:
            new_status = AppointmentStatus(value)
        except ValueError:
            raise ValidationError(f"Invalid status: {value}")

        if new_status not in TRANSITIONS[AppointmentStatus.PENDING]:
            raise ValidationError("Status must be 'approved' or 'rejected'")
        return new_status

    def transition(
        self,
        appointment: Appointment,
        new_status: Union[str, AppointmentStatus],
        caller: Caller,
    ) -> Appointment:
        """Apply a review outcome to an appointment and persist it."""
        target = self.parse_status(new_status)

        decision = can_transition(
            caller, appointment.customer_id, appointment.employee_id, target
        )
        if not decision.allowed:
            raise AuthorizationError(decision.reason)

        current = AppointmentStatus(appointment.status)
        if target not in TRANSITIONS[current]:
            raise ValidationError(f"Appointment is already {current.value}")

        if target == AppointmentStatus.APPROVED and self.conflicts.has_conflict(
            appointment.employee_id,
            appointment.start_time,
            appointment.end_time,
            exclude_id=appointment.id,
        ):
            logger.warning(f"Approval of appointment {appointment.id} blocked by an overlapping booking")
            raise ConflictError()

        appointment.status = target
        commit_or_conflict(self.db)
        self.db.refresh(appointment)

        logger.info(
            f"Appointment {appointment.id}: {current.value} -> {target.value} "
            f"by {caller.role.value} {caller.id}"
        )
        return appointment
