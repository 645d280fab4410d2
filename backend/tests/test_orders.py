import asyncio

import aiosqlite
import pytest

from salesops import catalog
from salesops.db import write_conflicts_as
from salesops.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationFailure
from salesops.pricing import LineRequest
from salesops.states import InvoiceStatus, OrderStatus, QuoteStatus


@pytest.fixture
async def order(wf, refs, two_lines):
    return await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines, notes="direct")


@pytest.mark.anyio
async def test_create_direct_order(order):
    assert order["number"] == "ORD-000001"
    assert order["status"] == OrderStatus.PENDING.value
    assert order["quote_id"] is None
    assert order["total_cents"] == 5500
    assert [i["subtotal_cents"] for i in order["items"]] == [3000, 2500]


@pytest.mark.anyio
async def test_create_order_validation(wf, refs):
    with pytest.raises(ValidationFailure):
        await wf.orders.create_order(client_id=refs["client"]["id"], items=[])
    with pytest.raises(ValidationFailure):
        await wf.orders.create_order(
            client_id=refs["client"]["id"], items=[LineRequest(product_id=refs["widget"]["id"], quantity=0)]
        )
    with pytest.raises(NotFoundError):
        await wf.orders.create_order(client_id=404, items=[LineRequest(product_id=refs["widget"]["id"], quantity=1)])
    with pytest.raises(NotFoundError):
        await wf.orders.create_order(client_id=refs["client"]["id"], items=[LineRequest(product_id=404, quantity=1)])
    assert await wf.orders.list_orders() == []


@pytest.mark.anyio
async def test_create_order_linking_a_quote_converts_it(wf, quote, refs, two_lines):
    order = await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines, quote_id=quote["id"])
    assert order["quote_id"] == quote["id"]
    assert (await wf.quotes.get_quote(quote["id"]))["status"] == QuoteStatus.CONVERTED_TO_ORDER.value
    with pytest.raises(BusinessRuleError):
        await wf.orders.create_order(client_id=refs["client"]["id"], items=two_lines, quote_id=quote["id"])
    with pytest.raises(BusinessRuleError):
        await wf.quotes.convert_to_order(quote["id"])
    assert len(await wf.orders.list_orders()) == 1


@pytest.mark.anyio
async def test_status_path_to_completed(wf, order):
    with pytest.raises(BusinessRuleError):
        await wf.orders.update_order_status(order["id"], OrderStatus.COMPLETED)
    assert (await wf.orders.get_order(order["id"]))["status"] == "PENDING"
    in_process = await wf.orders.update_order_status(order["id"], OrderStatus.IN_PROCESS)
    assert in_process["status"] == "IN_PROCESS"
    completed = await wf.orders.update_order_status(order["id"], OrderStatus.COMPLETED)
    assert completed["status"] == "COMPLETED"
    assert completed["updated_at"] is not None
    # same-state request is a no-op
    assert (await wf.orders.update_order_status(order["id"], OrderStatus.COMPLETED))["status"] == "COMPLETED"
    with pytest.raises(BusinessRuleError):
        await wf.orders.update_order_status(order["id"], OrderStatus.CANCELLED)


@pytest.mark.anyio
async def test_update_order_recomputes_total(wf, order, refs):
    updated = await wf.orders.update_order(
        order["id"],
        client_id=refs["client"]["id"],
        items=[LineRequest(product_id=refs["widget"]["id"], quantity=7)],
        notes="bigger",
    )
    assert updated["total_cents"] == 7000
    assert len(updated["items"]) == 1


@pytest.mark.anyio
async def test_completed_order_cannot_be_edited(wf, order, refs, two_lines):
    await wf.orders.update_order_status(order["id"], OrderStatus.IN_PROCESS)
    await wf.orders.update_order_status(order["id"], OrderStatus.COMPLETED)
    with pytest.raises(ConflictError):
        await wf.orders.update_order(order["id"], client_id=refs["client"]["id"], items=two_lines)


@pytest.mark.anyio
async def test_delete_order_from_quote_reverts_quote(wf, quote):
    order = await wf.quotes.convert_to_order(quote["id"])
    await wf.orders.delete_order(order["id"])
    with pytest.raises(NotFoundError):
        await wf.orders.get_order(order["id"])
    reloaded = await wf.quotes.get_quote(quote["id"])
    assert reloaded["status"] == QuoteStatus.ACCEPTED.value
    # converting again is allowed once the order is gone
    again = await wf.quotes.convert_to_order(quote["id"])
    assert again["quote_id"] == quote["id"]


@pytest.mark.anyio
async def test_invoice_from_order(wf, order):
    invoice = await wf.orders.create_invoice_from_order(order["id"])
    assert invoice["status"] == InvoiceStatus.PENDING.value
    assert invoice["order_id"] == order["id"]
    assert invoice["total_cents"] == order["total_cents"]
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.INVOICED.value


@pytest.mark.anyio
async def test_second_invoice_for_same_order_fails(wf, order):
    first = await wf.orders.create_invoice_from_order(order["id"])
    with pytest.raises(BusinessRuleError):
        await wf.orders.create_invoice_from_order(order["id"])
    invoices = await wf.invoices.list_invoices()
    assert [i["id"] for i in invoices] == [first["id"]]


@pytest.mark.anyio
async def test_cancelled_order_cannot_be_invoiced(wf, order):
    await wf.orders.update_order_status(order["id"], OrderStatus.CANCELLED)
    with pytest.raises(BusinessRuleError):
        await wf.orders.create_invoice_from_order(order["id"])
    assert await wf.invoices.list_invoices() == []


@pytest.mark.anyio
async def test_invoiced_order_cannot_be_deleted_or_edited(wf, order, refs, two_lines):
    invoice = await wf.orders.create_invoice_from_order(order["id"])
    with pytest.raises(ConflictError):
        await wf.orders.delete_order(order["id"])
    with pytest.raises(ConflictError):
        await wf.orders.update_order(order["id"], client_id=refs["client"]["id"], items=two_lines)
    with pytest.raises(BusinessRuleError):
        await wf.orders.update_order_status(order["id"], OrderStatus.PENDING)
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.INVOICED.value
    assert (await wf.invoices.get_invoice(invoice["id"]))["status"] == InvoiceStatus.PENDING.value


@pytest.mark.anyio
async def test_order_listings(wf, order, refs):
    assert [o["id"] for o in await wf.orders.list_orders_by_client(refs["client"]["id"])] == [order["id"]]
    assert [o["id"] for o in await wf.orders.list_orders_by_status("PENDING")] == [order["id"]]
    assert (await wf.orders.get_order_by_number(order["number"]))["id"] == order["id"]
    with pytest.raises(NotFoundError):
        await wf.orders.list_orders_by_client(12345)


@pytest.mark.anyio
async def test_concurrent_invoicing_creates_one_invoice(wf, order):
    results = await asyncio.gather(
        wf.orders.create_invoice_from_order(order["id"]),
        wf.orders.create_invoice_from_order(order["id"]),
        return_exceptions=True,
    )
    invoices = [r for r in results if isinstance(r, dict)]
    failures = [r for r in results if isinstance(r, BaseException)]
    assert len(invoices) == 1
    assert len(failures) == 1 and isinstance(failures[0], BusinessRuleError), failures
    assert [i["id"] for i in await wf.invoices.list_invoices()] == [invoices[0]["id"]]
    assert (await wf.orders.get_order(order["id"]))["status"] == OrderStatus.INVOICED.value


@pytest.mark.anyio
async def test_quote_of_another_client_cannot_be_linked(wf, quote, two_lines):
    other = await catalog.create_client(name="Initech", email="ap@initech.com")
    with pytest.raises(BusinessRuleError):
        await wf.orders.create_order(client_id=other["id"], items=two_lines, quote_id=quote["id"])
    assert (await wf.quotes.get_quote(quote["id"]))["status"] == QuoteStatus.DRAFT.value
    assert await wf.orders.list_orders() == []


@pytest.mark.anyio
async def test_unique_key_violation_reads_as_business_rule():
    with pytest.raises(BusinessRuleError) as exc:
        async with write_conflicts_as("Order ORD-000001 has already been invoiced"):
            raise aiosqlite.IntegrityError("UNIQUE constraint failed: invoices.order_id")
    assert exc.value.message == "Order ORD-000001 has already been invoiced"

    with pytest.raises(aiosqlite.OperationalError):
        async with write_conflicts_as("unused"):
            raise aiosqlite.OperationalError("no such table: invoices")
