import copy
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ....application.ports.records_store import (
    COLLECTIONS,
    AnyOf,
    Criterion,
    FindResult,
    QueryOptions,
    RecordsStore,
)
from ....exceptions import RecordNotFound, StoreError


def _like_to_regex(pattern: str) -> "re.Pattern[str]":
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _matches(record: Dict[str, Any], criterion: Criterion) -> bool:
    if isinstance(criterion, AnyOf):
        return any(_matches(record, f) for f in criterion.filters)
    value = record.get(criterion.field)
    op, target = criterion.op, criterion.value
    if op == "eq":
        return value == target
    if op == "in":
        return value in target
    # NULL never satisfies a comparison, as in SQL
    if value is None:
        return False
    if op == "neq":
        return value != target
    if op == "ilike":
        return _like_to_regex(target).fullmatch(str(value)) is not None
    if op == "gte":
        return value >= target
    return value <= target


class InMemoryRecordsStore(RecordsStore):
    """Process-local records store with the same filter semantics as the SQL one."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in COLLECTIONS}

    def _table(self, collection: str) -> Dict[str, Dict[str, Any]]:
        table = self._collections.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection: {collection}")
        return table

    async def find(self, collection: str, filters: Sequence[Criterion] = (), options: Optional[QueryOptions] = None) -> FindResult:
        options = options or QueryOptions()
        rows: List[Dict[str, Any]] = [r for r in self._table(collection).values() if all(_matches(r, f) for f in filters)]

        # stable sorts applied last key first give a multi-column ordering
        for name, descending in reversed(options.order_by):
            present = [r for r in rows if r.get(name) is not None]
            missing = [r for r in rows if r.get(name) is None]
            present.sort(key=lambda r: r[name], reverse=descending)
            rows = present + missing

        count = len(rows) if options.count else None
        end = None if options.limit is None else options.offset + options.limit
        window = rows[options.offset:end]
        if options.columns:
            records = [{c: r.get(c) for c in options.columns} for r in window]
        else:
            records = [copy.deepcopy(r) for r in window]
        return FindResult(records=records, count=count)

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        table = self._table(collection)
        now = datetime.now(timezone.utc).isoformat()
        row = copy.deepcopy(record)
        if not row.get("id"):
            row["id"] = str(uuid.uuid4())
        row["created_at"] = row.get("created_at") or now
        row["updated_at"] = now
        if row["id"] in table:
            raise StoreError(f"Duplicate id {row['id']} in {collection}")
        table[row["id"]] = row
        return copy.deepcopy(row)

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        table = self._table(collection)
        row = table.get(record_id)
        if row is None:
            raise RecordNotFound(f"{collection} record {record_id} not found")
        row.update({k: copy.deepcopy(v) for k, v in changes.items() if k not in ("id", "created_at")})
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        return copy.deepcopy(row)
