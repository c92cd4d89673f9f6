import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..ports.records_store import APPOINTMENT_TYPES, QueryOptions, RecordsStore, any_of, contains, eq, ilike
from ..view_models import DirectoryFilters, PageState
from ...exceptions import RecordNotFound, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
DEFAULT_COLOR = "#2196F3"


@dataclass
class AppointmentTypesService:
    store: RecordsStore

    async def list(self, filters: DirectoryFilters, page: PageState) -> Dict[str, Any]:
        criteria = []
        if filters.status != "all":
            criteria.append(eq("is_active", filters.status == "active"))
        if filters.search:
            like = contains(filters.search)
            criteria.append(any_of(ilike("name", like), ilike("description", like)))

        options = QueryOptions(order_by=[("name", False)], count=True).window(page.page, page.page_size)
        result = await self.store.find(APPOINTMENT_TYPES, criteria, options)
        page = page.model_copy(update={"total": result.count or 0})
        return {
            "items": result.records,
            "page": page.page,
            "page_size": page.page_size,
            "total": page.total,
            "total_pages": page.total_pages,
        }

    async def save(self, data: Dict[str, Any], type_id: Optional[str] = None, acting_user_id: Optional[str] = None) -> Dict[str, Any]:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required")
        duration = data.get("duration_minutes", DEFAULT_DURATION_MINUTES)
        if duration is None or duration <= 0:
            raise ValidationError("Duration must be greater than 0")

        payload = {
            "name": name,
            "description": data.get("description") or "",
            "duration_minutes": duration,
            "color": data.get("color") or DEFAULT_COLOR,
            "is_active": data.get("is_active", True) is not False,
        }
        if type_id:
            return await self.store.update(APPOINTMENT_TYPES, type_id, payload)

        if acting_user_id:
            payload["created_by"] = acting_user_id
        created = await self.store.insert(APPOINTMENT_TYPES, payload)
        logger.info(f"Created appointment type {created.get('id')} ({name})")
        return created

    async def toggle_active(self, type_id: str) -> Dict[str, Any]:
        result = await self.store.find(APPOINTMENT_TYPES, [eq("id", type_id)], QueryOptions(columns=["id", "is_active"], limit=1))
        if not result.records:
            raise RecordNotFound("Appointment type not found")
        current = result.records[0]
        return await self.store.update(APPOINTMENT_TYPES, type_id, {"is_active": not current.get("is_active")})
