"""Wiring between the quote, order and invoice managers.

Quote conversion needs order creation and order invoicing needs invoice
creation, while order and invoice deletion reach back to roll the parent's
status. Each manager only sees the narrow capability it calls, and the
reverse direction goes through small status writers over the parent table,
so the managers never reference each other in a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Protocol

from salesops import models
from salesops.db import utcnow
from salesops.sequences import SequenceIssuer
from salesops.services.documents import DocumentTable
from salesops.states import OrderStatus, QuoteStatus

if TYPE_CHECKING:
    from salesops.services.invoices import InvoiceManager
    from salesops.services.orders import OrderManager
    from salesops.services.quotes import QuoteManager


class OrderFromQuote(Protocol):
    async def create_order_from_quote(self, quote: dict) -> dict: ...


class InvoiceFromOrder(Protocol):
    async def create_invoice_from_order(
        self, order: dict, due_date: Optional[datetime] = None, notes: Optional[str] = None
    ) -> dict: ...


class QuoteStatusWriter(Protocol):
    async def mark_converted(self, quote_id: int) -> None: ...
    async def revert_conversion(self, quote_id: int) -> None: ...


class OrderStatusWriter(Protocol):
    async def revert_invoicing(self, order_id: int) -> None: ...


class QuoteStatusStore:
    def __init__(self):
        self.quotes = DocumentTable("Quote", models.Quote)

    async def mark_converted(self, quote_id: int) -> None:
        await self.quotes.update(quote_id, status=QuoteStatus.CONVERTED_TO_ORDER.value, updated_at=utcnow())

    async def revert_conversion(self, quote_id: int) -> None:
        await self.quotes.update(quote_id, status=QuoteStatus.ACCEPTED.value, updated_at=utcnow())


class OrderStatusStore:
    def __init__(self):
        self.orders = DocumentTable("Order", models.Order)

    async def revert_invoicing(self, order_id: int) -> None:
        order = await self.orders.find_one(id=order_id)
        if order and order["status"] == OrderStatus.INVOICED.value:
            await self.orders.update(order_id, status=OrderStatus.COMPLETED.value, updated_at=utcnow())


@dataclass
class SalesWorkflow:
    quotes: "QuoteManager"
    orders: "OrderManager"
    invoices: "InvoiceManager"
    sequences: SequenceIssuer


def build_workflow(sequences: Optional[SequenceIssuer] = None) -> SalesWorkflow:
    from salesops.services.invoices import InvoiceManager
    from salesops.services.orders import OrderManager
    from salesops.services.quotes import QuoteManager

    sequences = sequences or SequenceIssuer()
    invoices = InvoiceManager(sequences, order_status=OrderStatusStore())
    orders = OrderManager(sequences, invoices=invoices, quote_status=QuoteStatusStore())
    quotes = QuoteManager(sequences, orders=orders)
    return SalesWorkflow(quotes=quotes, orders=orders, invoices=invoices, sequences=sequences)
