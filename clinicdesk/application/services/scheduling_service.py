import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..ports.records_store import APPOINTMENTS, QueryOptions, RecordsStore, eq, neq
from ..view_models import field_value
from ...exceptions import ConflictError, StoreError

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Another appointment exists for this dentist at the same date and time."
DUPLICATE_SLOT_ERROR = "Conflict: duplicate time for dentist"


class ConflictPolicy(str, Enum):
    # advisory checks keep the form usable when the store is unreachable
    TREAT_AS_NO_CONFLICT = "treat_as_no_conflict"
    # the pre-write check must block the save instead
    PROPAGATE = "propagate"


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    message: str = ""


NO_CONFLICT = ConflictResult(conflict=False, message="")


class ConflictCheckGuard:
    """Drops advisory results that arrive after a newer check was started.

    Each check takes a sequence number from ``next_seq``; ``publish`` only
    accepts the result of the newest one.
    """

    def __init__(self) -> None:
        self._issued = 0
        self._latest: Optional[ConflictResult] = None

    def next_seq(self) -> int:
        self._issued += 1
        return self._issued

    def publish(self, seq: int, result: ConflictResult) -> bool:
        if seq != self._issued:
            logger.debug(f"Discarding stale conflict result #{seq} (latest #{self._issued})")
            return False
        self._latest = result
        return True

    @property
    def latest(self) -> Optional[ConflictResult]:
        return self._latest


@dataclass
class SchedulingService:
    store: RecordsStore

    async def check_conflict(
        self,
        candidate: Any,
        existing_id: Optional[str] = None,
        on_query_error: ConflictPolicy = ConflictPolicy.TREAT_AS_NO_CONFLICT,
    ) -> ConflictResult:
        appointment_date = field_value(candidate, "appointment_date")
        appointment_time = field_value(candidate, "appointment_time")
        dentist_id = field_value(candidate, "dentist_id") or field_value(candidate, "practitioner_id")
        if not appointment_date or not appointment_time or not dentist_id:
            return NO_CONFLICT

        if existing_id is None:
            existing_id = field_value(candidate, "id")

        filters = [
            eq("appointment_date", appointment_date),
            eq("appointment_time", appointment_time),
            eq("dentist_id", dentist_id),
        ]
        if existing_id:
            filters.append(neq("id", existing_id))

        try:
            result = await self.store.find(APPOINTMENTS, filters, QueryOptions(columns=["id"], limit=1))
        except StoreError as e:
            if on_query_error == ConflictPolicy.PROPAGATE:
                raise
            logger.warning(f"Conflict check failed, treating slot as free: {e.detail}")
            return NO_CONFLICT

        if result.records:
            return ConflictResult(conflict=True, message=CONFLICT_MESSAGE)
        return NO_CONFLICT

    async def advisory_check(self, candidate: Any, guard: ConflictCheckGuard) -> Optional[ConflictResult]:
        """Run a fail-open check; returns ``None`` if a newer check superseded it."""
        seq = guard.next_seq()
        result = await self.check_conflict(candidate)
        return result if guard.publish(seq, result) else None

    async def ensure_slot_free(self, candidate: Any, existing_id: Optional[str] = None) -> None:
        result = await self.check_conflict(candidate, existing_id, on_query_error=ConflictPolicy.PROPAGATE)
        if result.conflict:
            logger.info(
                f"Rejected duplicate slot for dentist {field_value(candidate, 'dentist_id')} "
                f"on {field_value(candidate, 'appointment_date')} at {field_value(candidate, 'appointment_time')}"
            )
            raise ConflictError(DUPLICATE_SLOT_ERROR)
