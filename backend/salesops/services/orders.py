from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from salesops import catalog, models
from salesops.db import as_naive_utc, database, utcnow, write_conflicts_as
from salesops.errors import BusinessRuleError, ConflictError
from salesops.logging_config import get_logger
from salesops.pricing import LineRequest, PricedLine, document_total, price_lines, validate_lines
from salesops.sequences import DocumentKind, SequenceIssuer
from salesops.services.documents import DocumentTable
from salesops.services.workflow import InvoiceFromOrder, QuoteStatusWriter
from salesops.states import (
    ORDER_LOCKED,
    QUOTE_CONVERTIBLE,
    OrderStatus,
    QuoteStatus,
    check_order_transition,
)

logger = get_logger("orders")


class OrderManager:
    """Order creation (direct or from a quote), edits, status changes and invoicing."""

    def __init__(self, sequences: SequenceIssuer, invoices: InvoiceFromOrder, quote_status: QuoteStatusWriter):
        self.sequences = sequences
        self.invoices = invoices
        self.quote_status = quote_status
        self.table = DocumentTable("Order", models.Order, models.OrderItem, "order_id")
        self.quotes = DocumentTable("Quote", models.Quote)

    # ---- reads ----
    async def get_order(self, order_id: int) -> dict:
        return await self.table.load(order_id)

    async def get_order_by_number(self, number: str) -> dict:
        return await self.table.with_items(await self.table.fetch_by_number(number))

    async def list_orders(self, limit: int = 50, offset: int = 0) -> list[dict]:
        return await self.table.search(limit=limit, offset=offset)

    async def list_orders_by_client(self, client_id: int) -> list[dict]:
        await catalog.get_client(client_id)
        return await self.table.search(client_id=client_id, limit=None)

    async def list_orders_by_status(self, status: OrderStatus) -> list[dict]:
        return await self.table.search(status=OrderStatus(status).value, limit=None)

    async def list_orders_by_date_range(self, start: datetime, end: datetime) -> list[dict]:
        return await self.table.search(start=as_naive_utc(start), end=as_naive_utc(end), limit=None)

    async def search_orders(
        self,
        status: Optional[OrderStatus] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> list[dict]:
        if client_id is not None:
            await catalog.get_client(client_id)
        return await self.table.search(
            status=OrderStatus(status).value if status else None,
            client_id=client_id,
            start=as_naive_utc(start),
            end=as_naive_utc(end),
            limit=limit,
            offset=offset,
        )

    # ---- writes ----
    async def create_order(
        self,
        client_id: int,
        items: Sequence,
        quote_id: Optional[int] = None,
        notes: Optional[str] = None,
        lines: Optional[list[PricedLine]] = None,
    ) -> dict:
        """Create a PENDING order.

        ``lines`` carries already-priced lines (a quote's items copied as is);
        otherwise ``items`` are priced against the current catalog.
        """
        validate_lines(items)
        conflict = (
            f"Quote {quote_id} has already been converted to an order"
            if quote_id is not None
            else "Order creation conflicted with a concurrent write"
        )
        async with write_conflicts_as(conflict):
            order = await self._insert_order(client_id, items, quote_id, notes, lines)
        logger.info("order created number=%s quote_id=%s total_cents=%s", order["number"], quote_id, order["total_cents"])
        return order

    async def _insert_order(self, client_id, items, quote_id, notes, lines) -> dict:
        async with database.transaction():
            await catalog.get_client(client_id)
            if quote_id is not None:
                await self._link_quote(quote_id, client_id)
            if lines is None:
                products = await catalog.get_products(i.product_id for i in items)
                lines = price_lines(items, products)
            number = await self.sequences.next_number(DocumentKind.ORDER)
            order_id = await self.table.insert(
                {
                    "number": number,
                    "status": OrderStatus.PENDING.value,
                    "total_cents": document_total(lines),
                    "notes": notes,
                    "client_id": client_id,
                    "quote_id": quote_id,
                    "created_at": utcnow(),
                },
                lines,
            )
            return await self.table.load(order_id)

    async def _link_quote(self, quote_id: int, client_id: int) -> None:
        quote = await self.quotes.fetch(quote_id, lock=True)
        if quote["client_id"] != client_id:
            raise BusinessRuleError(f"Quote {quote['number']} belongs to another client")
        existing = await self.table.find_one(quote_id=quote_id)
        if existing:
            raise BusinessRuleError(
                f"Quote {quote['number']} has already been converted to order {existing['number']}"
            )
        current = QuoteStatus(quote["status"])
        if current is QuoteStatus.CONVERTED_TO_ORDER:
            return
        if current not in QUOTE_CONVERTIBLE:
            raise BusinessRuleError(f"Quote {quote['number']} is {current.value} and cannot be converted")
        await self.quote_status.mark_converted(quote_id)

    async def create_order_from_quote(self, quote: dict) -> dict:
        items = [
            LineRequest(
                product_id=i["product_id"],
                quantity=i["quantity"],
                unit_price_cents=i["unit_price_cents"],
                description=i["description"],
            )
            for i in quote["items"]
        ]
        # copied verbatim, not re-priced from the catalog
        lines = [
            PricedLine(
                product_id=i["product_id"],
                quantity=i["quantity"],
                unit_price_cents=i["unit_price_cents"],
                subtotal_cents=i["subtotal_cents"],
                description=i["description"],
            )
            for i in quote["items"]
        ]
        return await self.create_order(
            client_id=quote["client_id"],
            items=items,
            quote_id=quote["id"],
            notes=quote.get("notes"),
            lines=lines,
        )

    async def update_order(
        self,
        order_id: int,
        client_id: int,
        items: Sequence,
        notes: Optional[str] = None,
    ) -> dict:
        validate_lines(items)
        async with database.transaction():
            order = await self.table.fetch(order_id, lock=True)
            status = OrderStatus(order["status"])
            if status in ORDER_LOCKED:
                raise ConflictError(f"Order {order['number']} is {status.value} and cannot be modified")
            await catalog.get_client(client_id)
            products = await catalog.get_products(i.product_id for i in items)
            lines = price_lines(items, products)
            await self.table.replace_items(order_id, lines)
            await self.table.update(
                order_id,
                client_id=client_id,
                notes=notes,
                total_cents=document_total(lines),
                updated_at=utcnow(),
            )
            order = await self.table.load(order_id)
        logger.info("order updated number=%s total_cents=%s", order["number"], order["total_cents"])
        return order

    async def update_order_status(self, order_id: int, status: OrderStatus) -> dict:
        status = OrderStatus(status)
        async with database.transaction():
            order = await self.table.fetch(order_id, lock=True)
            check_order_transition(order["status"], status)
            await self.table.update(order_id, status=status.value, updated_at=utcnow())
            order = await self.table.load(order_id)
        logger.info("order status number=%s status=%s", order["number"], status.value)
        return order

    async def delete_order(self, order_id: int) -> None:
        async with database.transaction():
            order = await self.table.fetch(order_id, lock=True)
            if order["status"] == OrderStatus.INVOICED.value:
                raise ConflictError(f"Order {order['number']} has been invoiced and cannot be deleted")
            await self.table.delete(order_id)
            if order["quote_id"] is not None:
                await self.quote_status.revert_conversion(order["quote_id"])
        logger.info("order deleted number=%s quote_id=%s", order["number"], order["quote_id"])

    async def create_invoice_from_order(
        self,
        order_id: int,
        due_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> dict:
        """Invoice the order and flip it to INVOICED in one transaction."""
        async with write_conflicts_as(f"Order {order_id} has already been invoiced"):
            async with database.transaction():
                order = await self.table.fetch(order_id, lock=True)
                status = OrderStatus(order["status"])
                if status is OrderStatus.CANCELLED:
                    raise BusinessRuleError(f"Cannot create invoice for cancelled order {order['number']}")
                if status is OrderStatus.INVOICED:
                    raise BusinessRuleError(f"Order {order['number']} has already been invoiced")
                invoice = await self.invoices.create_invoice_from_order(order, due_date=due_date, notes=notes)
                await self.table.update(order_id, status=OrderStatus.INVOICED.value, updated_at=utcnow())
        logger.info("order invoiced number=%s invoice=%s", order["number"], invoice["number"])
        return invoice
