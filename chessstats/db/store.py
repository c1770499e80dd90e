"""
Document store – collections of JSON documents addressed by key.

Writes are merge-upserts; no read-modify-write sequence is wrapped in a
transaction, so concurrent writers of the same document race and the last
write wins.
"""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chessstats.db.models import Base, Document


class DocumentStore:
    """Interface every store implementation honours."""

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    async def set(self, collection: str, key: str, data: dict[str, Any], merge: bool = False) -> None:
        raise NotImplementedError

    async def delete(self, collection: str, key: str) -> None:
        raise NotImplementedError

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        key = uuid.uuid4().hex
        await self.set(collection, key, data)
        return key

    async def query(
        self,
        collection: str,
        where: Optional[Iterable[tuple[str, Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        raise NotImplementedError


def _sort_key(field: str):
    # Documents missing the field sort below every present value
    def key(item: tuple[str, dict[str, Any]]):
        value = item[1].get(field)
        return (value is not None, value if value is not None else 0)

    return key


def filter_and_order(
    rows: list[tuple[str, dict[str, Any]]],
    where: Optional[Iterable[tuple[str, Any]]],
    order_by: Optional[str],
    descending: bool,
    limit: Optional[int],
) -> list[tuple[str, dict[str, Any]]]:
    """Apply equality filters, ordering and a limit to loaded documents."""
    conditions = list(where or [])
    if conditions:
        rows = [
            (k, d) for k, d in rows
            if all(d.get(field) == value for field, value in conditions)
        ]
    if order_by:
        rows = sorted(rows, key=_sort_key(order_by), reverse=descending)
    if limit is not None:
        rows = rows[:limit]
    return rows


class SqlDocumentStore(DocumentStore):
    """DocumentStore backed by the `documents` table."""

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]):
        self.engine = engine
        self.session_factory = session_factory

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Document.data).where(Document.collection == collection, Document.key == key)
            )
            data = result.scalar_one_or_none()
            return dict(data) if data is not None else None

    async def set(self, collection: str, key: str, data: dict[str, Any], merge: bool = False) -> None:
        try:
            await self._write(collection, key, data, merge)
        except IntegrityError:
            # Another writer inserted the same key between our read and insert
            await self._write(collection, key, data, merge)

    async def _write(self, collection: str, key: str, data: dict[str, Any], merge: bool) -> None:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Document).where(Document.collection == collection, Document.key == key)
            )
            row = result.scalar_one_or_none()

            if row is None:
                db.add(Document(collection=collection, key=key, data=dict(data)))
            elif merge:
                row.data = {**(row.data or {}), **data}
            else:
                row.data = dict(data)

            await db.commit()

    async def delete(self, collection: str, key: str) -> None:
        async with self.session_factory() as db:
            await db.execute(
                delete(Document).where(Document.collection == collection, Document.key == key)
            )
            await db.commit()

    async def query(
        self,
        collection: str,
        where: Optional[Iterable[tuple[str, Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Document.key, Document.data).where(Document.collection == collection)
            )
            rows = [(k, dict(d or {})) for k, d in result.all()]

        return filter_and_order(rows, where, order_by, descending, limit)
