from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.appointment import AppointmentStatus

# Request bodies keep the field names used by the booking client.
# Required fields are checked by the store so that a missing value is a 400.
class AppointmentCreate(BaseModel):
    empresa: Optional[str] = None
    tipo_consulta: Optional[str] = None
    descripcion: Optional[str] = None
    fecha_consulta: Optional[datetime] = None
    modalidad: Optional[str] = None
    direccion: Optional[str] = None
    employee_id: Optional[int] = None
    user_id: Optional[int] = None
    duracion_consulta: Optional[int] = None

class StatusUpdate(BaseModel):
    id: Optional[int] = None
    status: Optional[str] = None

class EmployeeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    full_name: Optional[str] = None
    specialty: Optional[str] = None

class AppointmentResponse(BaseModel):
    # Read from ORM attribute names, also accepts the wire names on re-validation
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(validation_alias="customer_id")
    employee_id: int
    empresa: Optional[str] = Field(default=None, validation_alias="company")
    tipo_consulta: Optional[str] = Field(default=None, validation_alias="consultation_type")
    descripcion: Optional[str] = Field(default=None, validation_alias="description")
    fecha_consulta: datetime = Field(validation_alias="start_time")
    end_time: datetime
    modalidad: Optional[str] = Field(default=None, validation_alias="modality")
    direccion: Optional[str] = Field(default=None, validation_alias="location")
    status: AppointmentStatus
    created_at: Optional[datetime] = None
    employee: Optional[EmployeeSummary] = None

class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    isStaff: bool

class MessageResponse(BaseModel):
    message: str
