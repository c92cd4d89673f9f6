from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

APPOINTMENTS = "appointments"
USERS = "users"
APPOINTMENT_TYPES = "appointment_types"

COLLECTIONS = (APPOINTMENTS, USERS, APPOINTMENT_TYPES)

FILTER_OPS = ("eq", "neq", "ilike", "gte", "lte", "in")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


@dataclass(frozen=True)
class AnyOf:
    """Matches when at least one of the wrapped filters matches."""
    filters: Tuple[Filter, ...]


Criterion = Union[Filter, AnyOf]


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)

def neq(field: str, value: Any) -> Filter:
    return Filter(field, "neq", value)

def ilike(field: str, pattern: str) -> Filter:
    return Filter(field, "ilike", pattern)

def gte(field: str, value: Any) -> Filter:
    return Filter(field, "gte", value)

def lte(field: str, value: Any) -> Filter:
    return Filter(field, "lte", value)

def in_(field: str, values: Sequence[Any]) -> Filter:
    return Filter(field, "in", tuple(values))

def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(tuple(filters))

def contains(term: str) -> str:
    """Build a case-insensitive substring pattern for ilike filters."""
    return f"%{term}%"


@dataclass
class QueryOptions:
    columns: Optional[List[str]] = None
    order_by: List[Tuple[str, bool]] = field(default_factory=list)  # (field, descending)
    offset: int = 0
    limit: Optional[int] = None
    count: bool = False

    def window(self, page: int, page_size: int) -> "QueryOptions":
        self.offset = (page - 1) * page_size
        self.limit = page_size
        return self


@dataclass
class FindResult:
    records: List[Dict[str, Any]]
    count: Optional[int] = None


class RecordsStore(Protocol):
    async def find(self, collection: str, filters: Sequence[Criterion] = (), options: Optional[QueryOptions] = None) -> FindResult:
        ...

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        ...
