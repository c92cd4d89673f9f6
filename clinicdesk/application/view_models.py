from datetime import date, timedelta
from math import ceil
from typing import Any, Literal, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..config import settings

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no-show")

# Built-in categories offered by the appointment form
APPOINTMENT_TYPES = [
    {"value": "checkup", "label": "Regular Checkup"},
    {"value": "cleaning", "label": "Teeth Cleaning"},
    {"value": "filling", "label": "Filling"},
    {"value": "extraction", "label": "Tooth Extraction"},
    {"value": "root_canal", "label": "Root Canal"},
    {"value": "crown", "label": "Crown"},
    {"value": "orthodontics", "label": "Orthodontics"},
    {"value": "consultation", "label": "Consultation"},
    {"value": "emergency", "label": "Emergency"},
    {"value": "followup", "label": "Follow-up"},
]


def field_value(record: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an object, ``None`` when absent."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


class AppointmentForm(BaseModel):
    """State of the add/edit appointment form."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    appointment_date: str = ""
    appointment_time: str = Field(default_factory=lambda: settings.DEFAULT_APPOINTMENT_TIME)
    patient_id: str = ""
    patient_name: str = ""
    dentist_id: str = Field(default="", validation_alias=AliasChoices("dentist_id", "practitioner_id"))
    appointment_type: Optional[str] = "checkup"
    status: str = "scheduled"
    notes: str = ""

    @property
    def practitioner_id(self) -> str:
        return self.dentist_id

    @property
    def is_editing(self) -> bool:
        return bool(self.id)


class AppointmentFilters(BaseModel):
    status: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    dentist_id: Optional[str] = None
    patient_query: Optional[str] = None
    dentist_query: Optional[str] = None


class DirectoryFilters(BaseModel):
    status: Literal["all", "active", "inactive"] = "all"
    search: str = ""


class PageState(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default_factory=lambda: settings.APPOINTMENTS_PAGE_SIZE, ge=1)
    total: int = 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def total_pages(self) -> int:
        return max(1, ceil(self.total / self.page_size))


class CalendarView(BaseModel):
    view: Literal["list", "day", "week"] = "list"
    calendar_date: Optional[str] = None


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def default_window(today: date, days: Optional[int] = None) -> Tuple[str, str]:
    days = settings.CALENDAR_WINDOW_DAYS if days is None else days
    return (today - timedelta(days=days)).isoformat(), (today + timedelta(days=days)).isoformat()


def day_window(day: date) -> Tuple[str, str]:
    return day.isoformat(), day.isoformat()


def week_window(day: date) -> Tuple[str, str]:
    start = start_of_week(day)
    return start.isoformat(), (start + timedelta(days=6)).isoformat()


def apply_view(filters: AppointmentFilters, page: PageState, calendar: CalendarView) -> Tuple[AppointmentFilters, PageState]:
    """Switch the list between list/day/week views; always returns to page 1."""
    updated = filters.model_copy()
    if calendar.calendar_date and calendar.view != "list":
        day = date.fromisoformat(calendar.calendar_date)
        window = day_window(day) if calendar.view == "day" else week_window(day)
        updated.from_date, updated.to_date = window
    return updated, page.model_copy(update={"page": 1})
