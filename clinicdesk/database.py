import logging
from fastapi import Request
from sqlmodel import SQLModel, create_engine
from .config import settings, Settings

logger = logging.getLogger(__name__)


def build_engine(db_url: str, echo: bool = False):
    # Choose engine options based on database scheme
    engine_kwargs = {}
    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })
    return create_engine(db_url, echo=echo, **engine_kwargs)


def create_db_and_tables(engine):
    from . import models  # noqa: F401  (registers tables on SQLModel.metadata)
    SQLModel.metadata.create_all(engine)


def build_records_store(config: Settings = settings):
    """Records store selected by ``RECORDS_BACKEND``."""
    backend = config.RECORDS_BACKEND.lower()
    if backend == "memory":
        from .infrastructure.persistence.memory.records_store_memory import InMemoryRecordsStore
        logger.info("Using in-memory records store")
        return InMemoryRecordsStore()
    if backend != "sql":
        raise ValueError(f"Unknown RECORDS_BACKEND: {config.RECORDS_BACKEND}")

    from .infrastructure.persistence.sqlalchemy.records_store_sql import SqlRecordsStore
    engine = build_engine(config.DATABASE_URL, echo=config.DEBUG)
    create_db_and_tables(engine)
    logger.info("Using SQL records store")
    return SqlRecordsStore(engine)


def get_records_store(request: Request):
    return request.app.state.records_store
