from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from salesops import catalog, models
from salesops.db import as_naive_utc, database, utcnow, write_conflicts_as
from salesops.errors import BusinessRuleError, ConflictError
from salesops.logging_config import get_logger
from salesops.pricing import document_total, price_lines, validate_lines
from salesops.sequences import DocumentKind, SequenceIssuer
from salesops.services.documents import DocumentTable
from salesops.services.workflow import OrderFromQuote
from salesops.states import QUOTE_CONVERTIBLE, QuoteStatus, check_quote_transition

logger = get_logger("quotes")


class QuoteManager:
    """Quote creation, edits, status changes and conversion into an order."""

    def __init__(self, sequences: SequenceIssuer, orders: OrderFromQuote):
        self.sequences = sequences
        self.orders = orders
        self.table = DocumentTable("Quote", models.Quote, models.QuoteItem, "quote_id")

    # ---- reads ----
    async def get_quote(self, quote_id: int) -> dict:
        return await self.table.load(quote_id)

    async def get_quote_by_number(self, number: str) -> dict:
        return await self.table.with_items(await self.table.fetch_by_number(number))

    async def list_quotes(self, limit: int = 50, offset: int = 0) -> list[dict]:
        return await self.table.search(limit=limit, offset=offset)

    async def list_quotes_by_client(self, client_id: int) -> list[dict]:
        await catalog.get_client(client_id)
        return await self.table.search(client_id=client_id, limit=None)

    async def list_quotes_by_status(self, status: QuoteStatus) -> list[dict]:
        return await self.table.search(status=QuoteStatus(status).value, limit=None)

    async def list_quotes_by_date_range(self, start: datetime, end: datetime) -> list[dict]:
        return await self.table.search(start=as_naive_utc(start), end=as_naive_utc(end), limit=None)

    async def search_quotes(
        self,
        status: Optional[QuoteStatus] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> list[dict]:
        """Every given filter applies; ``start`` and ``end`` bound ``created_at`` independently."""
        if client_id is not None:
            await catalog.get_client(client_id)
        return await self.table.search(
            status=QuoteStatus(status).value if status else None,
            client_id=client_id,
            start=as_naive_utc(start),
            end=as_naive_utc(end),
            limit=limit,
            offset=offset,
        )

    # ---- writes ----
    async def create_quote(
        self,
        client_id: int,
        employee_id: int,
        items: Sequence,
        notes: Optional[str] = None,
    ) -> dict:
        validate_lines(items)
        async with database.transaction():
            await catalog.get_client(client_id)
            await catalog.get_employee(employee_id)
            products = await catalog.get_products(i.product_id for i in items)
            lines = price_lines(items, products)
            number = await self.sequences.next_number(DocumentKind.QUOTE)
            quote_id = await self.table.insert(
                {
                    "number": number,
                    "status": QuoteStatus.DRAFT.value,
                    "total_cents": document_total(lines),
                    "notes": notes,
                    "client_id": client_id,
                    "employee_id": employee_id,
                    "created_at": utcnow(),
                },
                lines,
            )
            quote = await self.table.load(quote_id)
        logger.info("quote created number=%s total_cents=%s", number, quote["total_cents"])
        return quote

    async def update_quote(
        self,
        quote_id: int,
        client_id: int,
        employee_id: int,
        items: Sequence,
        notes: Optional[str] = None,
    ) -> dict:
        validate_lines(items)
        async with database.transaction():
            quote = await self.table.fetch(quote_id, lock=True)
            if quote["status"] == QuoteStatus.CONVERTED_TO_ORDER.value:
                raise ConflictError(f"Quote {quote['number']} has been converted to an order and cannot be modified")
            await catalog.get_client(client_id)
            await catalog.get_employee(employee_id)
            products = await catalog.get_products(i.product_id for i in items)
            lines = price_lines(items, products)
            await self.table.replace_items(quote_id, lines)
            await self.table.update(
                quote_id,
                client_id=client_id,
                employee_id=employee_id,
                notes=notes,
                total_cents=document_total(lines),
                updated_at=utcnow(),
            )
            quote = await self.table.load(quote_id)
        logger.info("quote updated number=%s total_cents=%s", quote["number"], quote["total_cents"])
        return quote

    async def update_quote_status(self, quote_id: int, status: QuoteStatus) -> dict:
        status = QuoteStatus(status)
        async with database.transaction():
            quote = await self.table.fetch(quote_id, lock=True)
            check_quote_transition(quote["status"], status)
            await self.table.update(quote_id, status=status.value, updated_at=utcnow())
            quote = await self.table.load(quote_id)
        logger.info("quote status number=%s status=%s", quote["number"], status.value)
        return quote

    async def delete_quote(self, quote_id: int) -> None:
        async with database.transaction():
            quote = await self.table.fetch(quote_id, lock=True)
            if quote["status"] == QuoteStatus.CONVERTED_TO_ORDER.value:
                raise ConflictError(f"Quote {quote['number']} has been converted to an order and cannot be deleted")
            await self.table.delete(quote_id)
        logger.info("quote deleted number=%s", quote["number"])

    async def convert_to_order(self, quote_id: int) -> dict:
        """Flip the quote to CONVERTED_TO_ORDER and create its order, atomically."""
        async with write_conflicts_as(f"Quote {quote_id} has already been converted to an order"):
            async with database.transaction():
                quote = await self.table.fetch(quote_id, lock=True)
                current = QuoteStatus(quote["status"])
                if current is QuoteStatus.CONVERTED_TO_ORDER:
                    raise ConflictError(f"Quote {quote['number']} has already been converted to an order")
                if current not in QUOTE_CONVERTIBLE:
                    raise BusinessRuleError(f"Quote {quote['number']} is {current.value} and cannot be converted")
                await self.table.update(quote_id, status=QuoteStatus.CONVERTED_TO_ORDER.value, updated_at=utcnow())
                quote = await self.table.load(quote_id)
                order = await self.orders.create_order_from_quote(quote)
        logger.info("quote converted number=%s order=%s", quote["number"], order["number"])
        return order
