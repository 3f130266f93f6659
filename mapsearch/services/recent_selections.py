"""Bounded, persisted history of selected search results."""

from __future__ import annotations

import asyncio

from pydantic import TypeAdapter, ValidationError

from mapsearch.domain.models import SearchResult
from mapsearch.logging import logger
from mapsearch.storage.blob_store import BlobStore

_RESULTS_ADAPTER = TypeAdapter(list[SearchResult])

DEFAULT_STORAGE_KEY = "RecentSearches"


class RecentSelectionStore:
    """Most-recent-first list of selected places with no duplicate ids.

    The in-memory list is authoritative for the session. Every change is
    written to the blob store in the background; a failed write is logged and
    otherwise ignored.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        max_items: int = 10,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.blob_store = blob_store
        self.key = key
        self.max_items = max_items
        self._items: list[SearchResult] = []
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    async def load_persisted(self) -> list[SearchResult]:
        try:
            raw = await self.blob_store.load_blob(self.key)
        except Exception as exc:
            logger.warning("recent_load_failed", key=self.key, error=str(exc))
            raw = None

        items: list[SearchResult] = []
        if raw:
            try:
                items = _RESULTS_ADAPTER.validate_json(raw)
            except ValidationError as exc:
                logger.warning("recent_decode_failed", key=self.key, errors=exc.error_count())

        self._items = self._dedupe(items)[: self.max_items]
        return list(self._items)

    def add(self, result: SearchResult) -> None:
        items = [item for item in self._items if item.id != result.id]
        items.insert(0, result)
        self._items = items[: self.max_items]
        self._schedule_persist()

    def all(self) -> list[SearchResult]:
        return list(self._items)

    async def flush(self) -> None:
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("recent_persist_skipped", key=self.key, reason="no running event loop")
            return
        task = loop.create_task(self._persist())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self) -> None:
        async with self._write_lock:
            # encode under the lock so the last write always carries the newest list
            payload = _RESULTS_ADAPTER.dump_json(self._items)
            try:
                await self.blob_store.save_blob(self.key, payload)
            except Exception as exc:
                logger.warning("recent_persist_failed", key=self.key, error=str(exc))

    @staticmethod
    def _dedupe(items: list[SearchResult]) -> list[SearchResult]:
        seen: set[str] = set()
        unique: list[SearchResult] = []
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            unique.append(item)
        return unique

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["RecentSelectionStore", "DEFAULT_STORAGE_KEY"]
