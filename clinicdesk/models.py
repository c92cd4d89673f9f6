# clinicdesk/models.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Patients, dentists and staff share one table; ``role`` tells them apart."""
    __tablename__ = "users"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: Optional[str] = Field(default=None, max_length=100, index=True)
    email: Optional[str] = Field(default=None, max_length=100, index=True)
    phone: Optional[str] = Field(default=None, max_length=20, index=True)
    role: str = Field(default="patient", max_length=20, index=True)  # patient, dentist, staff, admin
    status: str = Field(default="active", max_length=20)  # active, inactive
    date_of_birth: Optional[str] = Field(default=None, max_length=10)
    gender: Optional[str] = Field(default=None, max_length=20)
    age: Optional[str] = Field(default=None, max_length=10)
    address: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"

    id: str = Field(default_factory=_new_id, primary_key=True)
    appointment_date: str = Field(max_length=10, index=True)  # YYYY-MM-DD
    appointment_time: str = Field(max_length=5)  # HH:MM
    dentist_id: str = Field(foreign_key="users.id", index=True)
    dentist_name: Optional[str] = Field(default=None, max_length=100)
    patient_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    patient_name: Optional[str] = Field(default=None, max_length=100)
    appointment_type: Optional[str] = Field(default=None, max_length=50)
    status: str = Field(default="scheduled", max_length=20)  # scheduled, confirmed, completed, cancelled, no-show
    notes: Optional[str] = Field(default=None)
    balance: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class AppointmentType(SQLModel, table=True):
    __tablename__ = "appointment_types"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(max_length=100, index=True)
    description: Optional[str] = Field(default=None)
    duration_minutes: int = Field(default=60)
    color: str = Field(default="#2196F3", max_length=20)
    is_active: bool = Field(default=True)
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


TABLES = {
    "users": User,
    "appointments": Appointment,
    "appointment_types": AppointmentType,
}
