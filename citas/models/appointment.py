from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Text, CheckConstraint,
    DDL, Enum as SQLEnum, event, func, text
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .profile import Profile

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Appointment(Base):
    __tablename__ = "citas"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_citas_end_after_start"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Ownership
    customer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    # Appointment details
    company = Column(String(255), nullable=True)
    consultation_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    modality = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)

    # Slot [start_time, end_time)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    employee = relationship(Profile, foreign_keys=[employee_id])

    def __repr__(self):
        return f"<Appointment(id={self.id}, customer_id={self.customer_id}, employee_id={self.employee_id}, start='{self.start_time}', status='{self.status}')>"

# Storage-level guarantee against double-booking: approved slots of one
# employee may not overlap. PostgreSQL only.
_table = Appointment.__table__
_table.append_constraint(
    ExcludeConstraint(
        (_table.c.employee_id, "="),
        (func.tsrange(_table.c.start_time, _table.c.end_time), "&&"),
        name="ex_citas_approved_overlap",
        using="gist",
        where=text("status = 'approved'"),
    ).ddl_if(dialect="postgresql")
)

event.listen(
    _table,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
