# clinicdesk/schemas/patients/patient.py
from pydantic import BaseModel
from typing import Optional, Literal

class PatientCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None  # YYYY-MM-DD
    gender: Optional[str] = None
    age: Optional[str] = None
    address: Optional[str] = None

class PatientUpdate(PatientCreate):
    status: Optional[Literal["active", "inactive"]] = None

class PatientOption(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class PatientRegistrationResponse(BaseModel):
    patient: dict
    created: bool
    notice: str

class VisitStats(BaseModel):
    count: int
    last_at: Optional[str] = None
    total_balance: float
    balance_display: str
