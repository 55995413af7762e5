"""
Role and ownership rules for appointments.

Every function here is a pure function of the caller and the appointment's
ownership fields; nothing touches the database. Services call these and raise
the matching exception when a decision is negative.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel

from .exceptions import ValidationError
from .security import Caller, UserRole
from ..models.appointment import AppointmentStatus


class OwnerSide(str, Enum):
    EMPLOYEE = "employee"
    CUSTOMER = "customer"
    NONE = "none"


class PermissionDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "PermissionDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "PermissionDecision":
        return cls(allowed=False, reason=reason)


class ListScope(BaseModel):
    """Row filter for a LIST request. None means unfiltered."""
    employee_id: Optional[int] = None
    customer_id: Optional[int] = None
    approved_only: bool = False


class BookingParties(BaseModel):
    customer_id: int
    employee_id: int
    status: AppointmentStatus


# Target statuses each (role, owned side) pair may set on a pending appointment
TRANSITION_TABLE = {
    (UserRole.STAFF, OwnerSide.EMPLOYEE): {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED},
    (UserRole.STAFF, OwnerSide.CUSTOMER): set(),
    (UserRole.STAFF, OwnerSide.NONE): set(),
    (UserRole.ADMIN, OwnerSide.EMPLOYEE): {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED},
    (UserRole.ADMIN, OwnerSide.CUSTOMER): {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED},
    (UserRole.ADMIN, OwnerSide.NONE): {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED},
    (UserRole.CUSTOMER, OwnerSide.EMPLOYEE): set(),
    (UserRole.CUSTOMER, OwnerSide.CUSTOMER): {AppointmentStatus.REJECTED},
    (UserRole.CUSTOMER, OwnerSide.NONE): set(),
}

# Status an appointment is created with, per creating role
INITIAL_STATUS = {
    UserRole.CUSTOMER: AppointmentStatus.PENDING,
    UserRole.STAFF: AppointmentStatus.APPROVED,
    UserRole.ADMIN: AppointmentStatus.APPROVED,
}


def owner_side(caller: Caller, customer_id: int, employee_id: int) -> OwnerSide:
    """Which side of the appointment the caller owns, employee side first."""
    if caller.role == UserRole.CUSTOMER:
        return OwnerSide.CUSTOMER if customer_id == caller.id else OwnerSide.NONE
    if employee_id == caller.id:
        return OwnerSide.EMPLOYEE
    if customer_id == caller.id:
        return OwnerSide.CUSTOMER
    return OwnerSide.NONE


def resolve_booking_parties(
    caller: Caller,
    employee_id: Optional[int],
    user_id: Optional[int],
) -> BookingParties:
    """Decide who the appointment is for and who serves it.

    Staff always book for themselves and must name the customer. Admins must
    name the customer and may assign another employee. Customers book for
    themselves and must name the employee.
    """
    if caller.role == UserRole.CUSTOMER:
        if not employee_id:
            raise ValidationError("Employee is required")
        return BookingParties(
            customer_id=caller.id,
            employee_id=employee_id,
            status=INITIAL_STATUS[caller.role],
        )

    if not user_id:
        raise ValidationError("Client (user_id) is required for employee booking")

    if caller.role == UserRole.STAFF:
        target_employee = caller.id
    elif caller.role == UserRole.ADMIN:
        target_employee = employee_id or caller.id
    else:
        raise ValueError(f"Unhandled role: {caller.role}")

    return BookingParties(
        customer_id=user_id,
        employee_id=target_employee,
        status=INITIAL_STATUS[caller.role],
    )


def list_scope(caller: Caller, filter_employee_id: Optional[int] = None) -> ListScope:
    """Rows a caller may see in a LIST request."""
    if caller.role == UserRole.STAFF:
        return ListScope(employee_id=caller.id)
    if caller.role == UserRole.ADMIN:
        return ListScope(employee_id=filter_employee_id)
    if caller.role == UserRole.CUSTOMER:
        if filter_employee_id:
            # Availability view: never leak other customers' pending requests
            return ListScope(employee_id=filter_employee_id, approved_only=True)
        return ListScope(customer_id=caller.id)
    raise ValueError(f"Unhandled role: {caller.role}")


def can_transition(
    caller: Caller,
    customer_id: int,
    employee_id: int,
    new_status: AppointmentStatus,
) -> PermissionDecision:
    side = owner_side(caller, customer_id, employee_id)
    if side == OwnerSide.NONE and caller.role != UserRole.ADMIN:
        return PermissionDecision.deny("Forbidden: You can only update your own appointments")

    allowed = TRANSITION_TABLE[(caller.role, side)]
    if new_status not in allowed:
        return PermissionDecision.deny(
            f"Forbidden: a {caller.role.value} cannot set this appointment to {new_status.value}"
        )
    return PermissionDecision.allow()


def delete_rule(
    caller: Caller,
) -> Tuple[Optional[str], bool]:
    """Ownership column and pending requirement a delete is conditioned on.

    Returns (owner column or None for unconditional, pending_only).
    """
    if caller.role == UserRole.ADMIN:
        return None, False
    if caller.role == UserRole.STAFF:
        return "employee_id", False
    if caller.role == UserRole.CUSTOMER:
        return "customer_id", True
    raise ValueError(f"Unhandled role: {caller.role}")


def can_delete(
    caller: Caller,
    customer_id: int,
    employee_id: int,
    status: AppointmentStatus,
) -> PermissionDecision:
    owner_column, pending_only = delete_rule(caller)
    owners = {"customer_id": customer_id, "employee_id": employee_id}

    if owner_column and owners[owner_column] != caller.id:
        return PermissionDecision.deny("Forbidden: You can only delete your own appointments")
    if pending_only and status != AppointmentStatus.PENDING:
        return PermissionDecision.deny("Forbidden: only pending appointments can be cancelled")
    return PermissionDecision.allow()
