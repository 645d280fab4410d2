from fastapi import APIRouter, Depends, Query
from salesops import catalog, models, schemas
from salesops.deps import get_current_user

router = APIRouter(prefix="/employees", tags=["employees"])

@router.post("/", response_model=schemas.EmployeeOut, status_code=201)
async def create_employee(payload: schemas.EmployeeCreate, user=Depends(get_current_user)):
    return await catalog.create_employee(**payload.model_dump())

@router.get("/", response_model=list[schemas.EmployeeOut])
async def list_employees(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
):
    return await catalog.list_rows(models.Employee, limit=limit, offset=offset)

@router.get("/{employee_id}", response_model=schemas.EmployeeOut)
async def get_employee(employee_id: int, user=Depends(get_current_user)):
    return await catalog.get_employee(employee_id)
