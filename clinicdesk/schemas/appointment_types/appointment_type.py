# clinicdesk/schemas/appointment_types/appointment_type.py
from pydantic import BaseModel
from typing import Optional

class AppointmentTypeIn(BaseModel):
    name: str
    description: Optional[str] = ""
    duration_minutes: int = 60
    color: Optional[str] = "#2196F3"
    is_active: bool = True
