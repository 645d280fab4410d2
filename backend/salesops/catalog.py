"""Client, employee and product reference data."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select

from salesops import models
from salesops.db import database, rec_to_dict
from salesops.errors import NotFoundError, ValidationFailure


async def _get(model, kind: str, ident: int) -> dict:
    tbl = model.__table__
    row = await database.fetch_one(select(tbl).where(tbl.c.id == ident))
    if not row:
        raise NotFoundError.for_id(kind, ident)
    return rec_to_dict(row)


async def get_client(client_id: int) -> dict:
    return await _get(models.Client, "Client", client_id)


async def get_employee(employee_id: int) -> dict:
    return await _get(models.Employee, "Employee", employee_id)


async def get_product(product_id: int) -> dict:
    return await _get(models.Product, "Product", product_id)


async def get_products(product_ids: Iterable[int]) -> dict[int, dict]:
    """Resolve every id, failing on the first one that is missing."""
    wanted = sorted(set(product_ids))
    tbl = models.Product.__table__
    rows = await database.fetch_all(select(tbl).where(tbl.c.id.in_(wanted))) if wanted else []
    found = {int(r["id"]): rec_to_dict(r) for r in rows}
    for pid in wanted:
        if pid not in found:
            raise NotFoundError.for_id("Product", pid)
    return found


def resolve_unit_price(product: dict, supplied: Optional[int]) -> int:
    if supplied is not None:
        return int(supplied)
    return int(product["price_cents"] or 0)


async def _insert(model, values: dict, unique: tuple[str, str]) -> dict:
    tbl = model.__table__
    col, label = unique
    exists = await database.fetch_one(select(tbl.c.id).where(tbl.c[col] == values[col]))
    if exists:
        raise ValidationFailure(f"{label} already exists: {values[col]}")
    new_id = await database.execute(tbl.insert().values(**values))
    return await _get(model, model.__name__, new_id)


async def create_client(name: str, email: Optional[str] = None, phone: Optional[str] = None) -> dict:
    return await _insert(models.Client, {"name": name, "email": email, "phone": phone}, ("name", "Client name"))


async def create_employee(first_name: str, last_name: str, email: str, position: Optional[str] = None) -> dict:
    values = {"first_name": first_name, "last_name": last_name, "email": email, "position": position}
    return await _insert(models.Employee, values, ("email", "Employee email"))


async def create_product(name: str, sku: str, price_cents: int, active: bool = True) -> dict:
    values = {"name": name, "sku": sku, "price_cents": price_cents, "active": active}
    return await _insert(models.Product, values, ("sku", "Product sku"))


async def list_rows(model, limit: int = 50, offset: int = 0) -> list[dict]:
    tbl = model.__table__
    rows = await database.fetch_all(select(tbl).order_by(tbl.c.id.asc()).limit(limit).offset(offset))
    return [rec_to_dict(r) for r in rows]
