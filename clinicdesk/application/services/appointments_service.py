import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..ports.records_store import (
    APPOINTMENTS,
    USERS,
    QueryOptions,
    RecordsStore,
    contains,
    eq,
    gte,
    ilike,
    in_,
    lte,
)
from ..view_models import APPOINTMENT_STATUSES, AppointmentFilters, AppointmentForm, PageState
from .notes_parser import cleaned_notes, display_type, parse_type_from_notes
from .scheduling_service import SchedulingService
from ...config import settings
from ...exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


def name_for_id(user_id: Optional[str], fallback_name: Optional[str], names: Dict[str, Dict[str, Any]]) -> str:
    """Display name for a patient/dentist column: stored name, then user name, email, id."""
    if fallback_name:
        return fallback_name
    user = names.get(user_id) if user_id else None
    if user:
        return user.get("name") or user.get("email") or user_id
    return user_id or ""


@dataclass
class AppointmentsService:
    store: RecordsStore
    scheduling: SchedulingService

    def validate(self, form: AppointmentForm) -> None:
        if not form.appointment_date or not form.appointment_time or not form.dentist_id:
            raise ValidationError("Please select date, time, and dentist")
        if not form.patient_id:
            raise ValidationError('Please select a patient or use "Create & Select"')

        try:
            datetime.strptime(form.appointment_date, "%Y-%m-%d")
        except ValueError:
            raise ValidationError("Invalid appointment date format. Use YYYY-MM-DD")
        try:
            datetime.strptime(form.appointment_time, "%H:%M")
        except ValueError:
            raise ValidationError("Invalid appointment time format. Use HH:MM")

        if form.status not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {list(APPOINTMENT_STATUSES)}")

    async def save(self, form: AppointmentForm) -> Dict[str, Any]:
        """Validate, run the pre-write conflict check, then insert or update."""
        self.validate(form)
        await self.scheduling.ensure_slot_free(form, existing_id=form.id)

        payload = form.model_dump(exclude={"id"})
        if payload["notes"]:
            parsed = parse_type_from_notes(payload["notes"])
            if parsed.type and not payload["appointment_type"]:
                payload["appointment_type"] = parsed.type
            payload["notes"] = parsed.cleaned

        if form.is_editing:
            saved = await self.store.update(APPOINTMENTS, form.id, payload)
            logger.info(f"Updated appointment {form.id}")
        else:
            saved = await self.store.insert(APPOINTMENTS, payload)
            logger.info(f"Created appointment {saved.get('id')} for dentist {form.dentist_id}")
        return saved

    def form_for_edit(self, appointment: Dict[str, Any]) -> AppointmentForm:
        parsed = parse_type_from_notes(appointment.get("notes"))
        return AppointmentForm(
            id=appointment.get("id"),
            appointment_date=appointment.get("appointment_date") or "",
            appointment_time=appointment.get("appointment_time") or settings.DEFAULT_APPOINTMENT_TIME,
            patient_id=appointment.get("patient_id") or "",
            patient_name=appointment.get("patient_name") or "",
            dentist_id=appointment.get("dentist_id") or "",
            appointment_type=parsed.type or appointment.get("appointment_type") or "",
            status=appointment.get("status") or "scheduled",
            notes=parsed.cleaned if parsed.type else (appointment.get("notes") or ""),
        )

    async def get(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        result = await self.store.find(APPOINTMENTS, [eq("id", appointment_id)], QueryOptions(limit=1))
        return result.records[0] if result.records else None

    async def list(self, filters: AppointmentFilters, page: PageState) -> Dict[str, Any]:
        criteria = []
        if filters.status:
            criteria.append(eq("status", filters.status))
        if filters.from_date:
            criteria.append(gte("appointment_date", filters.from_date))
        if filters.to_date:
            criteria.append(lte("appointment_date", filters.to_date))
        if filters.dentist_id:
            criteria.append(eq("dentist_id", filters.dentist_id))
        if filters.patient_query:
            criteria.append(ilike("patient_name", contains(filters.patient_query)))
        if filters.dentist_query:
            criteria.append(ilike("dentist_name", contains(filters.dentist_query)))

        options = QueryOptions(
            order_by=[("appointment_date", True), ("appointment_time", True)],
            count=True,
        ).window(page.page, page.page_size)
        result = await self.store.find(APPOINTMENTS, criteria, options)

        names = await self.load_names(result.records)
        page = page.model_copy(update={"total": result.count or 0})
        return {
            "items": [self.present(a, names) for a in result.records],
            "page": page.page,
            "page_size": page.page_size,
            "total": page.total,
            "total_pages": page.total_pages,
        }

    async def load_names(self, rows: Iterable[Dict[str, Any]], known: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Dict[str, Any]]:
        """Fetch name/email for user ids referenced by rows that carry no stored name."""
        names = dict(known or {})
        ids = set()
        for a in rows:
            if a.get("patient_id") and not a.get("patient_name") and a["patient_id"] not in names:
                ids.add(a["patient_id"])
            if a.get("dentist_id") and not a.get("dentist_name") and a["dentist_id"] not in names:
                ids.add(a["dentist_id"])
        if not ids:
            return names
        try:
            result = await self.store.find(USERS, [in_("id", sorted(ids))], QueryOptions(columns=["id", "name", "email"]))
        except StoreError as e:
            # rows still render with raw ids
            logger.warning(f"Could not resolve user names: {e.detail}")
            return names
        for u in result.records:
            names[u["id"]] = {"name": u.get("name"), "email": u.get("email")}
        return names

    def present(self, appointment: Dict[str, Any], names: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        row = dict(appointment)
        row["display_type"] = display_type(appointment)
        row["clean_notes"] = cleaned_notes(appointment)
        row["patient_display"] = name_for_id(appointment.get("patient_id"), appointment.get("patient_name"), names)
        row["dentist_display"] = name_for_id(appointment.get("dentist_id"), appointment.get("dentist_name"), names)
        return row

    async def list_dentists(self) -> List[Dict[str, Any]]:
        result = await self.store.find(
            USERS,
            [eq("role", "dentist")],
            QueryOptions(columns=["id", "name", "role"], order_by=[("name", False)]),
        )
        return result.records
