from datetime import datetime
from fastapi import APIRouter, Depends, Query
from salesops import schemas
from salesops.deps import get_current_user, get_workflow
from salesops.states import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=schemas.OrderOut, status_code=201)
async def create_order(payload: schemas.OrderCreate, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.orders.create_order(
        client_id=payload.client_id,
        items=payload.items,
        quote_id=payload.quote_id,
        notes=payload.notes,
    )


@router.get("/", response_model=list[schemas.OrderOut])
async def list_orders(
    status: OrderStatus | None = None,
    client_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    wf=Depends(get_workflow),
    user=Depends(get_current_user),
):
    return await wf.orders.search_orders(
        status=status, client_id=client_id, start=start, end=end, limit=limit, offset=offset
    )


@router.get("/number/{number}", response_model=schemas.OrderOut)
async def get_order_by_number(number: str, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.orders.get_order_by_number(number)


@router.get("/{order_id:int}", response_model=schemas.OrderOut)
async def get_order(order_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.orders.get_order(order_id)


@router.put("/{order_id:int}", response_model=schemas.OrderOut)
async def update_order(
    order_id: int, payload: schemas.OrderUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.orders.update_order(
        order_id,
        client_id=payload.client_id,
        items=payload.items,
        notes=payload.notes,
    )


@router.patch("/{order_id:int}/status", response_model=schemas.OrderOut)
async def update_order_status(
    order_id: int, payload: schemas.OrderStatusUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.orders.update_order_status(order_id, payload.status)


@router.delete("/{order_id:int}", status_code=204)
async def delete_order(order_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    await wf.orders.delete_order(order_id)
    return None


@router.post("/{order_id:int}/invoice", response_model=schemas.InvoiceOut, status_code=201)
async def invoice_order(
    order_id: int,
    payload: schemas.OrderInvoiceCreate | None = None,
    wf=Depends(get_workflow),
    user=Depends(get_current_user),
):
    payload = payload or schemas.OrderInvoiceCreate()
    return await wf.orders.create_invoice_from_order(order_id, due_date=payload.due_date, notes=payload.notes)
