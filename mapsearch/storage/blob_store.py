"""Key-value blob stores backing persisted search state."""

from __future__ import annotations

from typing import Any, AsyncContextManager, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from mapsearch.db.models import StoredBlob
from mapsearch.services.exceptions import PersistenceError


class BlobStore(Protocol):
    async def load_blob(self, key: str) -> bytes | None: ...

    async def save_blob(self, key: str, data: bytes) -> None: ...


class MemoryBlobStore:
    """Process-local store, handy for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})

    async def load_blob(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    async def save_blob(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)


class SessionSource(Protocol):
    def session(self) -> AsyncContextManager[Any]: ...


class DatabaseBlobStore:
    """Stores each blob as one ``stored_blobs`` row addressed by key."""

    def __init__(self, database: SessionSource) -> None:
        self.database = database

    async def load_blob(self, key: str) -> bytes | None:
        try:
            async with self.database.session() as session:
                result = await session.execute(select(StoredBlob).where(StoredBlob.key == key))
                record = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load blob {key!r}: {exc}") from exc
        return record.payload if record is not None else None

    async def save_blob(self, key: str, data: bytes) -> None:
        try:
            async with self.database.session() as session:
                result = await session.execute(select(StoredBlob).where(StoredBlob.key == key))
                record = result.scalar_one_or_none()
                if record is None:
                    session.add(StoredBlob(key=key, payload=bytes(data)))
                else:
                    record.payload = bytes(data)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save blob {key!r}: {exc}") from exc


__all__ = ["BlobStore", "MemoryBlobStore", "DatabaseBlobStore", "SessionSource"]
