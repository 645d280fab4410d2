from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import and_

from salesops import catalog, models
from salesops.db import INVOICE_DUE_DAYS, as_naive_utc, database, utcnow, write_conflicts_as
from salesops.errors import BusinessRuleError, ConflictError, ValidationFailure
from salesops.logging_config import get_logger
from salesops.sequences import DocumentKind, SequenceIssuer
from salesops.services.documents import DocumentTable
from salesops.services.workflow import OrderStatusWriter
from salesops.states import InvoiceStatus, OrderStatus, check_invoice_transition

logger = get_logger("invoices")


def _check_due_date(due_date: Optional[datetime], now: datetime) -> None:
    if due_date is not None and due_date <= now:
        raise ValidationFailure("Payment due date must be in the future")


class InvoiceManager:
    """Invoices: one per order, payment recording, overdue sweep, deletion."""

    def __init__(self, sequences: SequenceIssuer, order_status: OrderStatusWriter, due_days: int = INVOICE_DUE_DAYS):
        self.sequences = sequences
        self.order_status = order_status
        self.due_days = due_days
        self.table = DocumentTable("Invoice", models.Invoice)

    # ---- reads ----
    async def get_invoice(self, invoice_id: int) -> dict:
        return await self.table.fetch(invoice_id)

    async def get_invoice_by_number(self, number: str) -> dict:
        return await self.table.fetch_by_number(number)

    async def get_invoice_for_order(self, order_id: int) -> Optional[dict]:
        return await self.table.find_one(order_id=order_id)

    async def list_invoices(self, limit: int = 50, offset: int = 0) -> list[dict]:
        return await self.table.search(limit=limit, offset=offset)

    async def list_invoices_by_client(self, client_id: int) -> list[dict]:
        await catalog.get_client(client_id)
        return await self.table.search(client_id=client_id, limit=None)

    async def list_invoices_by_status(self, status: InvoiceStatus) -> list[dict]:
        return await self.table.search(status=InvoiceStatus(status).value, limit=None)

    async def list_invoices_by_date_range(self, start: datetime, end: datetime) -> list[dict]:
        return await self.table.search(start=as_naive_utc(start), end=as_naive_utc(end), limit=None)

    async def search_invoices(
        self,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> list[dict]:
        if client_id is not None:
            await catalog.get_client(client_id)
        return await self.table.search(
            status=InvoiceStatus(status).value if status else None,
            client_id=client_id,
            start=as_naive_utc(start),
            end=as_naive_utc(end),
            limit=limit,
            offset=offset,
        )

    # ---- writes ----
    async def create_invoice_from_order(
        self,
        order: dict,
        due_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> dict:
        """Create the order's single invoice.

        The caller holds the order row lock; the lookup below and the unique
        ``order_id`` constraint keep it to one invoice per order.
        """
        async with write_conflicts_as(f"Order {order['number']} has already been invoiced"):
            async with database.transaction():
                existing = await self.table.find_one(order_id=order["id"])
                if existing:
                    raise BusinessRuleError(
                        f"Invoice {existing['number']} already exists for order {order['number']}"
                    )
                if order["status"] == OrderStatus.CANCELLED.value:
                    raise BusinessRuleError(f"Cannot create invoice for cancelled order {order['number']}")
                now = utcnow()
                due_date = as_naive_utc(due_date)
                _check_due_date(due_date, now)
                number = await self.sequences.next_number(DocumentKind.INVOICE)
                invoice_id = await self.table.insert({
                    "number": number,
                    "status": InvoiceStatus.PENDING.value,
                    "total_cents": order["total_cents"],
                    "due_date": due_date or now + timedelta(days=self.due_days),
                    "notes": notes,
                    "client_id": order["client_id"],
                    "order_id": order["id"],
                    "created_at": now,
                })
                invoice = await self.table.fetch(invoice_id)
        logger.info("invoice created number=%s order=%s total_cents=%s", number, order["number"], invoice["total_cents"])
        return invoice

    async def update_invoice(self, invoice_id: int, due_date: datetime, notes: Optional[str] = None) -> dict:
        due_date = as_naive_utc(due_date)
        async with database.transaction():
            invoice = await self.table.fetch(invoice_id, lock=True)
            if invoice["status"] == InvoiceStatus.PAID.value:
                raise ConflictError(f"Invoice {invoice['number']} has been paid and cannot be modified")
            _check_due_date(due_date, utcnow())
            await self.table.update(invoice_id, due_date=due_date, notes=notes, updated_at=utcnow())
            invoice = await self.table.fetch(invoice_id)
        logger.info("invoice updated number=%s", invoice["number"])
        return invoice

    async def mark_invoice_as_paid(
        self,
        invoice_id: int,
        payment_method: str,
        payment_date: Optional[datetime] = None,
    ) -> dict:
        async with database.transaction():
            invoice = await self.table.fetch(invoice_id, lock=True)
            check_invoice_transition(invoice["status"], InvoiceStatus.PAID)
            await self.table.update(
                invoice_id,
                status=InvoiceStatus.PAID.value,
                payment_date=as_naive_utc(payment_date) or utcnow(),
                payment_method=payment_method,
                updated_at=utcnow(),
            )
            invoice = await self.table.fetch(invoice_id)
        logger.info("invoice paid number=%s method=%s", invoice["number"], payment_method)
        return invoice

    async def update_invoice_status(self, invoice_id: int, status: InvoiceStatus) -> dict:
        status = InvoiceStatus(status)
        async with database.transaction():
            invoice = await self.table.fetch(invoice_id, lock=True)
            check_invoice_transition(invoice["status"], status)
            values = {"status": status.value, "updated_at": utcnow()}
            if status is InvoiceStatus.PAID and invoice["payment_date"] is None:
                values["payment_date"] = utcnow()
            await self.table.update(invoice_id, **values)
            invoice = await self.table.fetch(invoice_id)
        logger.info("invoice status number=%s status=%s", invoice["number"], status.value)
        return invoice

    async def sweep_overdue(self, now: Optional[datetime] = None) -> int:
        """Reclassify PENDING invoices past their due date as OVERDUE."""
        now = now or utcnow()
        tbl = self.table.tbl
        async with database.transaction():
            due = await database.fetch_all(
                tbl.select().where(and_(tbl.c.status == InvoiceStatus.PENDING.value, tbl.c.due_date < now))
            )
            if due:
                await database.execute(
                    tbl.update()
                    .where(and_(tbl.c.status == InvoiceStatus.PENDING.value, tbl.c.due_date < now))
                    .values(status=InvoiceStatus.OVERDUE.value, updated_at=now)
                )
        if due:
            logger.info("overdue sweep reclassified=%s", len(due))
        return len(due)

    async def get_overdue_invoices(self) -> list[dict]:
        await self.sweep_overdue()
        return await self.table.search(status=InvoiceStatus.OVERDUE.value, limit=None)

    async def delete_invoice(self, invoice_id: int) -> None:
        async with database.transaction():
            invoice = await self.table.fetch(invoice_id, lock=True)
            await self.order_status.revert_invoicing(invoice["order_id"])
            await self.table.delete(invoice_id)
        logger.info("invoice deleted number=%s order_id=%s", invoice["number"], invoice["order_id"])
