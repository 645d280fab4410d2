from datetime import datetime
from fastapi import APIRouter, Depends, Query
from salesops import schemas
from salesops.deps import get_current_user, get_workflow
from salesops.states import QuoteStatus

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/", response_model=schemas.QuoteOut, status_code=201)
async def create_quote(payload: schemas.QuoteCreate, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.quotes.create_quote(
        client_id=payload.client_id,
        employee_id=payload.employee_id,
        items=payload.items,
        notes=payload.notes,
    )


@router.get("/", response_model=list[schemas.QuoteOut])
async def list_quotes(
    status: QuoteStatus | None = None,
    client_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    wf=Depends(get_workflow),
    user=Depends(get_current_user),
):
    return await wf.quotes.search_quotes(
        status=status, client_id=client_id, start=start, end=end, limit=limit, offset=offset
    )


@router.get("/number/{number}", response_model=schemas.QuoteOut)
async def get_quote_by_number(number: str, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.quotes.get_quote_by_number(number)


@router.get("/{quote_id:int}", response_model=schemas.QuoteOut)
async def get_quote(quote_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.quotes.get_quote(quote_id)


@router.put("/{quote_id:int}", response_model=schemas.QuoteOut)
async def update_quote(
    quote_id: int, payload: schemas.QuoteUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.quotes.update_quote(
        quote_id,
        client_id=payload.client_id,
        employee_id=payload.employee_id,
        items=payload.items,
        notes=payload.notes,
    )


@router.patch("/{quote_id:int}/status", response_model=schemas.QuoteOut)
async def update_quote_status(
    quote_id: int, payload: schemas.QuoteStatusUpdate, wf=Depends(get_workflow), user=Depends(get_current_user)
):
    return await wf.quotes.update_quote_status(quote_id, payload.status)


@router.delete("/{quote_id:int}", status_code=204)
async def delete_quote(quote_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    await wf.quotes.delete_quote(quote_id)
    return None


@router.post("/{quote_id:int}/convert", response_model=schemas.OrderOut, status_code=201)
async def convert_quote(quote_id: int, wf=Depends(get_workflow), user=Depends(get_current_user)):
    return await wf.quotes.convert_to_order(quote_id)
