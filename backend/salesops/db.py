import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import aiosqlite
import asyncpg
from databases import Database
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from dotenv import load_dotenv

from salesops.errors import BusinessRuleError

load_dotenv()
DATABASE_URL = os.getenv('DATABASE_URL', 'postgresql://postgres:postgres@db:5432/postgres')
INVOICE_DUE_DAYS = int(os.getenv('INVOICE_DUE_DAYS', '30'))
OVERDUE_SWEEP_SECONDS = int(os.getenv('OVERDUE_SWEEP_SECONDS', '3600'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

database = Database(DATABASE_URL)
engine = create_engine(DATABASE_URL, pool_pre_ping=True)
Base = declarative_base()

# driver errors raised when two writers race on the same row or unique key
_PG_WRITE_CONFLICTS = (
    asyncpg.UniqueViolationError,
    asyncpg.LockNotAvailableError,
    asyncpg.DeadlockDetectedError,
    asyncpg.SerializationError,
)


def utcnow() -> datetime:
    # naive UTC: columns are "timestamp without time zone"
    return datetime.utcnow().replace(microsecond=0)


def rec_to_dict(rec) -> dict:
    # databases Record -> SQLAlchemy Row (sqlite) or asyncpg Record (postgres)
    return dict(getattr(rec, "_mapping", rec))


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def is_write_conflict(exc: BaseException) -> bool:
    if isinstance(exc, (aiosqlite.IntegrityError, *_PG_WRITE_CONFLICTS)):
        return True
    return isinstance(exc, aiosqlite.OperationalError) and "locked" in str(exc)


@asynccontextmanager
async def write_conflicts_as(message: str):
    """Re-raise a concurrent-writer driver error as a BusinessRuleError."""
    try:
        yield
    except Exception as exc:
        if is_write_conflict(exc):
            raise BusinessRuleError(message) from exc
        raise
