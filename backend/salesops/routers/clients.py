from fastapi import APIRouter, Depends, Query
from salesops import catalog, models, schemas
from salesops.deps import get_current_user

router = APIRouter(prefix="/clients", tags=["clients"])

@router.post("/", response_model=schemas.ClientOut, status_code=201)
async def create_client(payload: schemas.ClientCreate, user=Depends(get_current_user)):
    return await catalog.create_client(name=payload.name, email=payload.email, phone=payload.phone)

@router.get("/", response_model=list[schemas.ClientOut])
async def list_clients(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
):
    return await catalog.list_rows(models.Client, limit=limit, offset=offset)

@router.get("/{client_id}", response_model=schemas.ClientOut)
async def get_client(client_id: int, user=Depends(get_current_user)):
    return await catalog.get_client(client_id)
