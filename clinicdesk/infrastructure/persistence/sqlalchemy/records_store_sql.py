import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select
from starlette.concurrency import run_in_threadpool

from ....models import TABLES
from ....application.ports.records_store import (
    AnyOf,
    Criterion,
    FindResult,
    QueryOptions,
    RecordsStore,
)
from ....exceptions import RecordNotFound, StoreError

logger = logging.getLogger(__name__)


class SqlRecordsStore(RecordsStore):
    """Records store backed by the SQLModel tables in ``clinicdesk.models``.

    Each call opens its own session and runs in the threadpool so the event
    loop never blocks on the database.
    """

    def __init__(self, engine):
        self.engine = engine

    def _model(self, collection: str):
        model = TABLES.get(collection)
        if model is None:
            raise StoreError(f"Unknown collection: {collection}")
        return model

    def _column(self, model, name: str):
        if name not in model.model_fields:
            raise StoreError(f"Unknown field {name!r} on {model.__tablename__}")
        return getattr(model, name)

    def _clause(self, model, criterion: Criterion):
        if isinstance(criterion, AnyOf):
            return or_(*[self._clause(model, f) for f in criterion.filters])
        col = self._column(model, criterion.field)
        op, value = criterion.op, criterion.value
        if op == "eq":
            return col == value
        if op == "neq":
            return col != value
        if op == "ilike":
            return col.ilike(value)
        if op == "gte":
            return col >= value
        if op == "lte":
            return col <= value
        return col.in_(list(value))

    def _to_record(self, row: SQLModel, columns: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        data = row.model_dump()
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        if columns:
            return {c: data.get(c) for c in columns}
        return data

    def _find_sync(self, collection: str, filters: Sequence[Criterion], options: QueryOptions) -> FindResult:
        model = self._model(collection)
        clauses = [self._clause(model, f) for f in filters]
        with Session(self.engine) as session:
            query = select(model)
            if clauses:
                query = query.where(*clauses)
            for name, descending in options.order_by:
                col = self._column(model, name)
                query = query.order_by((col.desc() if descending else col.asc()).nullslast())
            if options.offset:
                query = query.offset(options.offset)
            if options.limit is not None:
                query = query.limit(options.limit)
            rows = session.exec(query).all()

            count = None
            if options.count:
                count_query = select(func.count()).select_from(model)
                if clauses:
                    count_query = count_query.where(*clauses)
                count = session.exec(count_query).one()
            return FindResult(records=[self._to_record(r, options.columns) for r in rows], count=count)

    def _insert_sync(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        values = {k: v for k, v in record.items() if k in model.model_fields and v is not None}
        with Session(self.engine) as session:
            row = model(**values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def _update_sync(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        with Session(self.engine) as session:
            row = session.get(model, record_id)
            if not row:
                raise RecordNotFound(f"{collection} record {record_id} not found")
            for key, value in changes.items():
                if key in model.model_fields and key not in ("id", "created_at"):
                    setattr(row, key, value)
            row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    async def find(self, collection: str, filters: Sequence[Criterion] = (), options: Optional[QueryOptions] = None) -> FindResult:
        try:
            return await run_in_threadpool(self._find_sync, collection, list(filters), options or QueryOptions())
        except SQLAlchemyError as e:
            logger.error(f"Query on {collection} failed: {e}")
            raise StoreError(f"Failed to query {collection}")

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await run_in_threadpool(self._insert_sync, collection, record)
        except SQLAlchemyError as e:
            logger.error(f"Insert into {collection} failed: {e}")
            raise StoreError(f"Failed to save {collection} record")

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await run_in_threadpool(self._update_sync, collection, record_id, changes)
        except SQLAlchemyError as e:
            logger.error(f"Update of {collection} {record_id} failed: {e}")
            raise StoreError(f"Failed to update {collection} record")
