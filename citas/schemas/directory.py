from typing import Optional

from pydantic import BaseModel, ConfigDict

class EmployeeEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: Optional[str] = None
    specialty: Optional[str] = None

class ClientEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
