from fastapi import APIRouter, Depends, Query
from salesops import catalog, models, schemas
from salesops.deps import get_current_user

router = APIRouter(prefix="/products", tags=["products"])

@router.post("/", response_model=schemas.ProductOut, status_code=201)
async def create_product(payload: schemas.ProductCreate, user=Depends(get_current_user)):
    return await catalog.create_product(**payload.model_dump())

@router.get("/", response_model=list[schemas.ProductOut])
async def list_products(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
):
    return await catalog.list_rows(models.Product, limit=limit, offset=offset)

@router.get("/{product_id}", response_model=schemas.ProductOut)
async def get_product(product_id: int, user=Depends(get_current_user)):
    return await catalog.get_product(product_id)
