from datetime import timedelta

import pytest

from salesops.db import utcnow
from salesops.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationFailure
from salesops.states import InvoiceStatus, OrderStatus


@pytest.fixture
async def invoiced(wf, quote):
    await wf.quotes.update_quote_status(quote["id"], "ACCEPTED")
    order = await wf.quotes.convert_to_order(quote["id"])
    invoice = await wf.orders.create_invoice_from_order(order["id"])
    return order, invoice


@pytest.mark.anyio
async def test_quote_to_paid_invoice_scenario(wf, quote, invoiced):
    order, invoice = invoiced
    assert quote["total_cents"] == 5500
    assert order["total_cents"] == 5500
    assert [(i["quantity"], i["unit_price_cents"]) for i in order["items"]] == [(3, 1000), (1, 2500)]

    assert invoice["number"] == "INV-000001"
    assert invoice["total_cents"] == 5500
    assert invoice["status"] == InvoiceStatus.PENDING.value
    assert invoice["due_date"] == invoice["created_at"] + timedelta(days=30)
    assert invoice["payment_date"] is None

    paid = await wf.invoices.mark_invoice_as_paid(invoice["id"], payment_method="transfer")
    assert paid["status"] == InvoiceStatus.PAID.value
    assert paid["payment_date"] is not None
    assert paid["payment_method"] == "transfer"
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.INVOICED.value


@pytest.mark.anyio
async def test_invoice_total_is_copied_not_recomputed(wf, refs, two_lines, db):
    order = await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines)
    otbl = wf.orders.table.tbl
    await db.execute(otbl.update().where(otbl.c.id == order["id"]).values(total_cents=4242))
    invoice = await wf.orders.create_invoice_from_order(order["id"])
    assert invoice["total_cents"] == 4242


@pytest.mark.anyio
async def test_explicit_due_date_and_notes(wf, refs, two_lines):
    order = await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines)
    due = utcnow() + timedelta(days=10)
    invoice = await wf.orders.create_invoice_from_order(order["id"], due_date=due, notes="net 10")
    assert invoice["due_date"] == due
    assert invoice["notes"] == "net 10"


@pytest.mark.anyio
async def test_due_date_in_the_past_is_rejected(wf, refs, two_lines):
    order = await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines)
    with pytest.raises(ValidationFailure):
        await wf.orders.create_invoice_from_order(order["id"], due_date=utcnow() - timedelta(days=1))
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.PENDING.value


@pytest.mark.anyio
async def test_invoice_manager_refuses_duplicate_directly(wf, invoiced):
    order, _ = invoiced
    with pytest.raises(BusinessRuleError):
        await wf.invoices.create_invoice_from_order(order)
    assert len(await wf.invoices.list_invoices()) == 1


@pytest.mark.anyio
async def test_mark_paid_is_idempotent(wf, invoiced):
    _, invoice = invoiced
    first_date = utcnow() - timedelta(days=2)
    await wf.invoices.mark_invoice_as_paid(invoice["id"], payment_method="card", payment_date=first_date)
    again = await wf.invoices.mark_invoice_as_paid(invoice["id"], payment_method="cash")
    assert again["status"] == InvoiceStatus.PAID.value
    assert again["payment_method"] == "cash"
    assert again["payment_date"] > first_date


@pytest.mark.anyio
async def test_status_update_to_paid_stamps_payment_date(wf, invoiced):
    _, invoice = invoiced
    paid = await wf.invoices.update_invoice_status(invoice["id"], InvoiceStatus.PAID)
    assert paid["payment_date"] is not None
    with pytest.raises(BusinessRuleError):
        await wf.invoices.update_invoice_status(invoice["id"], InvoiceStatus.PENDING)


@pytest.mark.anyio
async def test_overdue_sweep_is_idempotent(wf, invoiced):
    _, invoice = invoiced
    assert await wf.invoices.sweep_overdue() == 0
    later = invoice["due_date"] + timedelta(seconds=1)
    assert await wf.invoices.sweep_overdue(now=later) == 1
    assert await wf.invoices.sweep_overdue(now=later) == 0
    overdue = await wf.invoices.get_invoice(invoice["id"])
    assert overdue["status"] == InvoiceStatus.OVERDUE.value
    assert [i["id"] for i in await wf.invoices.get_overdue_invoices()] == [invoice["id"]]

    # an overdue invoice can still be paid, but not put back to pending
    with pytest.raises(BusinessRuleError):
        await wf.invoices.update_invoice_status(invoice["id"], InvoiceStatus.PENDING)
    paid = await wf.invoices.mark_invoice_as_paid(invoice["id"], payment_method="transfer")
    assert paid["status"] == InvoiceStatus.PAID.value
    assert await wf.invoices.sweep_overdue(now=later) == 0


@pytest.mark.anyio
async def test_update_invoice(wf, invoiced):
    _, invoice = invoiced
    due = utcnow() + timedelta(days=60)
    updated = await wf.invoices.update_invoice(invoice["id"], due_date=due, notes="extended")
    assert updated["due_date"] == due
    assert updated["notes"] == "extended"
    await wf.invoices.mark_invoice_as_paid(invoice["id"], payment_method="card")
    with pytest.raises(ConflictError):
        await wf.invoices.update_invoice(invoice["id"], due_date=due)


@pytest.mark.anyio
async def test_delete_invoice_reverts_order_to_completed(wf, invoiced):
    order, invoice = invoiced
    await wf.invoices.delete_invoice(invoice["id"])
    with pytest.raises(NotFoundError):
        await wf.invoices.get_invoice(invoice["id"])
    with pytest.raises(NotFoundError):
        await wf.invoices.get_invoice_by_number(invoice["number"])
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.COMPLETED.value
    # the order can be invoiced again
    again = await wf.orders.create_invoice_from_order(order["id"])
    assert again["number"] == "INV-000002"


@pytest.mark.anyio
async def test_invoice_listings(wf, invoiced, refs):
    _, invoice = invoiced
    assert [i["id"] for i in await wf.invoices.list_invoices_by_client(refs["client"]["id"])] == [invoice["id"]]
    assert [i["id"] for i in await wf.invoices.list_invoices_by_status("PENDING")] == [invoice["id"]]
    assert await wf.invoices.list_invoices_by_status("PAID") == []
    assert (await wf.invoices.get_invoice_for_order(invoice["order_id"]))["id"] == invoice["id"]
