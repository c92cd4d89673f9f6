# clinicdesk/schemas/appointments/appointment.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Optional

class AppointmentRow(BaseModel):
    id: str
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str  # HH:MM
    dentist_id: Optional[str] = None
    dentist_name: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    appointment_type: Optional[str] = None
    status: str
    notes: Optional[str] = None
    balance: Optional[float] = None
    display_type: str = ""
    clean_notes: str = ""
    patient_display: str = ""
    dentist_display: str = ""

class AppointmentListResponse(BaseModel):
    items: List[AppointmentRow]
    page: int
    page_size: int
    total: int
    total_pages: int

class ConflictResponse(BaseModel):
    conflict: bool
    message: str
    seq: Optional[int] = None  # echoed so the caller can drop out-of-order replies

class CalendarWindowResponse(BaseModel):
    view: str
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    page: int = 1

class DentistOption(BaseModel):
    id: str
    name: Optional[str] = None
    role: str = "dentist"

class AppointmentTypeOption(BaseModel):
    value: str
    label: str

class ConflictCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    dentist_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("dentist_id", "practitioner_id"))
