import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..ports.records_store import (
    APPOINTMENTS,
    USERS,
    QueryOptions,
    RecordsStore,
    any_of,
    contains,
    eq,
    ilike,
    in_,
)
from ..view_models import DirectoryFilters, PageState
from ...config import settings
from ...exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EXISTING_PATIENT_NOTICE = "Existing patient found and selected."
CREATED_PATIENT_NOTICE = "Patient created."

PROFILE_FIELDS = ("name", "email", "phone", "date_of_birth", "gender", "age", "address")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def balance_display(total_balance: Optional[float], currency: Optional[str] = None) -> str:
    if total_balance is None:
        return "-"
    if total_balance == 0:
        return "Fully PAID"
    currency = settings.CURRENCY_SYMBOL if currency is None else currency
    return f"{currency}{total_balance:.2f}"


def _as_amount(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _visit_time(appointment: Dict[str, Any]) -> Optional[datetime]:
    day = appointment.get("appointment_date")
    if not day:
        return None
    try:
        return datetime.strptime(f"{day} {appointment.get('appointment_time') or '00:00'}", "%Y-%m-%d %H:%M")
    except ValueError:
        return None


@dataclass
class PatientsService:
    store: RecordsStore

    async def search(self, term: Optional[str]) -> List[Dict[str, Any]]:
        """Autocomplete for the appointment form; empty on short terms or store errors."""
        term = (term or "").strip()
        if len(term) < settings.PATIENT_SEARCH_MIN_CHARS:
            return []
        try:
            result = await self.store.find(
                USERS,
                [eq("role", "patient"), ilike("name", contains(term))],
                QueryOptions(columns=["id", "name", "email", "phone", "role"], limit=settings.PATIENT_SEARCH_LIMIT),
            )
        except StoreError as e:
            logger.warning(f"Patient search failed: {e.detail}")
            return []
        return result.records

    async def find_existing(self, email: Optional[str], phone: Optional[str]) -> Optional[Dict[str, Any]]:
        for field_name, value in (("email", email), ("phone", phone)):
            if not value:
                continue
            result = await self.store.find(
                USERS,
                [eq(field_name, value), eq("role", "patient")],
                QueryOptions(limit=1),
            )
            if result.records:
                return result.records[0]
        return None

    async def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a patient, or select the one that already has this email/phone."""
        base = {k: _clean(data.get(k)) for k in PROFILE_FIELDS}
        if not base["name"]:
            raise ValidationError("Name is required for new patient")
        if not base["email"] and not base["phone"]:
            raise ValidationError("Email or Phone is required")
        if base["email"] and not is_valid_email(base["email"]):
            raise ValidationError("Please enter a valid email")

        existing = await self.find_existing(base["email"], base["phone"])
        if existing:
            logger.info(f"Matched existing patient {existing.get('id')}")
            return {"patient": existing, "created": False, "notice": EXISTING_PATIENT_NOTICE}

        record = {k: v for k, v in base.items() if v is not None}
        record.update({"role": "patient", "status": "active"})
        created = await self.store.insert(USERS, record)
        logger.info(f"Registered patient {created.get('id')}")
        return {"patient": created, "created": True, "notice": CREATED_PATIENT_NOTICE}

    async def list(self, filters: DirectoryFilters, page: PageState) -> Dict[str, Any]:
        criteria = [eq("role", "patient")]
        if filters.status != "all":
            criteria.append(eq("status", filters.status))
        if filters.search:
            like = contains(filters.search)
            criteria.append(any_of(ilike("name", like), ilike("email", like), ilike("phone", like)))

        options = QueryOptions(order_by=[("created_at", True)], count=True).window(page.page, page.page_size)
        result = await self.store.find(USERS, criteria, options)
        page = page.model_copy(update={"total": result.count or 0})
        return {
            "items": result.records,
            "page": page.page,
            "page_size": page.page_size,
            "total": page.total,
            "total_pages": page.total_pages,
        }

    async def update_profile(self, patient_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        if not _clean(data.get("name")):
            raise ValidationError("Name is required")
        changes = {k: _clean(data.get(k)) for k in PROFILE_FIELDS}
        if data.get("status"):
            changes["status"] = data["status"]
        return await self.store.update(USERS, patient_id, changes)

    async def toggle_status(self, patient: Dict[str, Any]) -> Dict[str, Any]:
        new_status = "inactive" if patient.get("status") == "active" else "active"
        return await self.store.update(USERS, patient["id"], {"status": new_status})

    async def get(self, patient_id: str) -> Optional[Dict[str, Any]]:
        result = await self.store.find(USERS, [eq("id", patient_id), eq("role", "patient")], QueryOptions(limit=1))
        return result.records[0] if result.records else None

    async def visit_stats(self, patient_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Appointment count, latest visit and outstanding balance per patient."""
        ids = [pid for pid in patient_ids if pid]
        if not ids:
            return {}
        try:
            result = await self.store.find(
                APPOINTMENTS,
                [in_("patient_id", ids)],
                QueryOptions(columns=["id", "patient_id", "appointment_date", "appointment_time", "balance"]),
            )
        except StoreError as e:
            # the directory still renders, just without the stats columns
            logger.warning(f"Could not load visit stats: {e.detail}")
            return {}
        stats: Dict[str, Dict[str, Any]] = {}
        for a in result.records:
            pid = a.get("patient_id")
            if not pid:
                continue
            entry = stats.setdefault(pid, {"count": 0, "last_at": None, "total_balance": 0.0})
            entry["count"] += 1
            entry["total_balance"] += _as_amount(a.get("balance"))
            at = _visit_time(a)
            if at and (entry["last_at"] is None or at > entry["last_at"]):
                entry["last_at"] = at
        for entry in stats.values():
            entry["balance_display"] = balance_display(entry["total_balance"])
        return stats
