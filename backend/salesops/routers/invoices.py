from datetime import datetime
from fastapi import APIRouter, Depends, Query
from salesops import schemas
from salesops.deps import get_current_user, get_workflow
from salesops.states import InvoiceStatus

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/", response_model=schemas.InvoiceOut, status_code=201)
async def create_invoice(payload: schemas.InvoiceCreate, wf=Depends(get_workflow), user=Depends(get_current_user)):
    # same path as /orders/{id}/invoice: the order flips to INVOICED with it
    return await wf.orders.create_invoice_from_order(payload.order_id, due_date=payload.due_date, notes=payload.notes)


@router.get("/", response_model=list[schemas.InvoiceOut])
async def list_invoices(
    status: InvoiceStatus | None = None,
    client_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    wf=Depends(get_workflow),
    user=Depends(get_current_user),
):
    return await wf.invoices.search_invoices(
        status=status, client_id=client_id, start=start, end=end, limit=limit, offset=offset
    )


@router.get("/overdue", response_model=list[schemas.InvoiceOut])
async def list_overdue_invoices(wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.invoices.get_overdue_invoices()


@router.get("/number/{number}", response_model=schemas.InvoiceOut)
async def get_invoice_by_number(number: str, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.invoices.get_invoice_by_number(number)


@router.get("/by-id/{invoice_id:int}", response_model=schemas.InvoiceOut)
async def get_invoice_by_id(invoice_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.invoices.get_invoice(invoice_id)


@router.put("/by-id/{invoice_id:int}", response_model=schemas.InvoiceOut)
async def update_invoice(
    invoice_id: int, payload: schemas.InvoiceUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.invoices.update_invoice(invoice_id, due_date=payload.due_date, notes=payload.notes)


@router.patch("/by-id/{invoice_id:int}/status", response_model=schemas.InvoiceOut)
async def update_invoice_status(
    invoice_id: int, payload: schemas.InvoiceStatusUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.invoices.update_invoice_status(invoice_id, payload.status)


@router.post("/by-id/{invoice_id:int}/mark-as-paid", response_model=schemas.InvoiceOut)
async def mark_invoice_as_paid(
    invoice_id: int, payload: schemas.InvoicePayment, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.invoices.mark_invoice_as_paid(
        invoice_id, payment_method=payload.payment_method, payment_date=payload.payment_date
    )


@router.delete("/by-id/{invoice_id:int}", status_code=204)
async def delete_invoice(invoice_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    await wf.invoices.delete_invoice(invoice_id)
    return None
