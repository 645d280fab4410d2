"""Table access shared by the quote, order and invoice managers."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select, and_

from salesops.db import database, rec_to_dict
from salesops.errors import NotFoundError
from salesops.pricing import PricedLine


class DocumentTable:
    """One document kind (header table plus optional line-item table)."""

    def __init__(self, label: str, model, item_model=None, item_fk: Optional[str] = None):
        self.label = label
        self.tbl = model.__table__
        self.items = item_model.__table__ if item_model is not None else None
        self.item_fk = item_fk

    async def fetch(self, doc_id: int, lock: bool = False) -> dict:
        stmt = select(self.tbl).where(self.tbl.c.id == doc_id)
        if lock:
            stmt = stmt.with_for_update()
        row = await database.fetch_one(stmt)
        if not row:
            raise NotFoundError.for_id(self.label, doc_id)
        return rec_to_dict(row)

    async def fetch_by_number(self, number: str) -> dict:
        row = await database.fetch_one(select(self.tbl).where(self.tbl.c.number == number))
        if not row:
            raise NotFoundError(f"{self.label} not found with number: {number}")
        return rec_to_dict(row)

    async def fetch_items(self, doc_id: int) -> list[dict]:
        if self.items is None:
            return []
        fk = self.items.c[self.item_fk]
        rows = await database.fetch_all(
            select(self.items).where(fk == doc_id).order_by(self.items.c.position.asc(), self.items.c.id.asc())
        )
        return [rec_to_dict(r) for r in rows]

    async def with_items(self, doc: dict) -> dict:
        if self.items is not None:
            doc["items"] = await self.fetch_items(doc["id"])
        return doc

    async def load(self, doc_id: int) -> dict:
        return await self.with_items(await self.fetch(doc_id))

    async def insert(self, values: dict, lines: list[PricedLine] = ()) -> int:
        doc_id = await database.execute(self.tbl.insert().values(**values))
        await self.insert_items(doc_id, lines)
        return doc_id

    async def insert_items(self, doc_id: int, lines: list[PricedLine]) -> None:
        for pos, line in enumerate(lines):
            await database.execute(self.items.insert().values(**{self.item_fk: doc_id}, **line.row(pos)))

    async def replace_items(self, doc_id: int, lines: list[PricedLine]) -> None:
        await self.delete_items(doc_id)
        await self.insert_items(doc_id, lines)

    async def delete_items(self, doc_id: int) -> None:
        if self.items is not None:
            await database.execute(self.items.delete().where(self.items.c[self.item_fk] == doc_id))

    async def update(self, doc_id: int, **values) -> None:
        await database.execute(self.tbl.update().where(self.tbl.c.id == doc_id).values(**values))

    async def delete(self, doc_id: int) -> None:
        await self.delete_items(doc_id)
        await database.execute(self.tbl.delete().where(self.tbl.c.id == doc_id))

    async def find_one(self, **where) -> Optional[dict]:
        conds = [self.tbl.c[k] == v for k, v in where.items()]
        row = await database.fetch_one(select(self.tbl).where(and_(*conds)))
        return rec_to_dict(row) if row else None

    async def search(
        self,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> list[dict]:
        conds = []
        if status:
            conds.append(self.tbl.c.status == status)
        if client_id is not None:
            conds.append(self.tbl.c.client_id == client_id)
        if start is not None:
            conds.append(self.tbl.c.created_at >= start)
        if end is not None:
            conds.append(self.tbl.c.created_at <= end)
        stmt = select(self.tbl)
        if conds:
            stmt = stmt.where(and_(*conds))
        stmt = stmt.order_by(self.tbl.c.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        rows = await database.fetch_all(stmt)
        return [await self.with_items(rec_to_dict(r)) for r in rows]
