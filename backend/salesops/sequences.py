"""Document number issuance.

Numbers come from one durable counter row per document kind. The increment
and the read are a single ``UPDATE ... RETURNING`` statement, so two callers
can never observe the same value, across processes as well as tasks. Inside
a caller's transaction the increment commits or rolls back with it.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import text

from salesops.db import database
from salesops.logging_config import get_logger

logger = get_logger("sequences")


class DocumentKind(str, Enum):
    QUOTE = "quote"
    ORDER = "order"
    INVOICE = "invoice"


PREFIXES = {
    DocumentKind.QUOTE: "QT",
    DocumentKind.ORDER: "ORD",
    DocumentKind.INVOICE: "INV",
}
WIDTH = 6

_INCREMENT_SQL = """
    UPDATE document_sequences
    SET last_value = last_value + 1
    WHERE kind = :kind
    RETURNING last_value
"""


_SEED_SQL = """
    INSERT INTO document_sequences (kind, last_value)
    VALUES (:kind, 0)
    ON CONFLICT (kind) DO NOTHING
"""


def format_number(kind: DocumentKind, value: int) -> str:
    return f"{PREFIXES[kind]}-{value:0{WIDTH}d}"


async def ensure_sequences(db=database) -> None:
    """Create the counter row of every document kind that lacks one."""
    for kind in DocumentKind:
        await db.execute(text(_SEED_SQL).bindparams(kind=kind.value))


class SequenceIssuer:
    def __init__(self, db=database):
        self.db = db

    async def next_value(self, kind: DocumentKind) -> int:
        kind = DocumentKind(kind)
        increment = text(_INCREMENT_SQL).bindparams(kind=kind.value)
        value = await self.db.fetch_val(increment)
        if value is None:
            # first use of this kind without ensure_sequences()
            await self.db.execute(text(_SEED_SQL).bindparams(kind=kind.value))
            value = await self.db.fetch_val(increment)
        logger.debug("sequence allocated kind=%s value=%s", kind.value, value)
        return int(value)

    async def next_number(self, kind: DocumentKind) -> str:
        kind = DocumentKind(kind)
        return format_number(kind, await self.next_value(kind))
