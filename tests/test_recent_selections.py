"""Tests for the persisted recent-selection list."""

from __future__ import annotations

import json

import pytest

from mapsearch.domain.models import SearchResult
from mapsearch.services.recent_selections import RecentSelectionStore
from mapsearch.storage.blob_store import MemoryBlobStore


def _result(place_id: str) -> SearchResult:
    return SearchResult(id=place_id, name=f"Place {place_id}", latitude=1.0, longitude=2.0)


class FailingBlobStore:
    def __init__(self) -> None:
        self.save_attempts = 0

    async def load_blob(self, key: str) -> bytes | None:
        raise OSError("disk unavailable")

    async def save_blob(self, key: str, data: bytes) -> None:
        self.save_attempts += 1
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_reselecting_promotes_without_duplicates():
    store = RecentSelectionStore(MemoryBlobStore())

    store.add(_result("a"))
    store.add(_result("b"))
    store.add(_result("a"))

    assert [item.id for item in store.all()] == ["a", "b"]
    await store.flush()


@pytest.mark.asyncio
async def test_capacity_drops_least_recent():
    store = RecentSelectionStore(MemoryBlobStore(), max_items=10)

    for index in range(11):
        store.add(_result(str(index)))

    ids = [item.id for item in store.all()]
    assert len(ids) == 10
    assert ids[0] == "10"
    assert "0" not in ids
    await store.flush()


@pytest.mark.asyncio
async def test_add_persists_latest_list_under_key():
    blobs = MemoryBlobStore()
    store = RecentSelectionStore(blobs, key="recent-test")

    store.add(_result("a"))
    store.add(_result("b"))
    await store.flush()

    payload = json.loads(blobs.blobs["recent-test"])
    assert [item["id"] for item in payload] == ["b", "a"]


@pytest.mark.asyncio
async def test_load_persisted_round_trips_between_sessions():
    blobs = MemoryBlobStore()
    first = RecentSelectionStore(blobs)
    first.add(_result("x"))
    first.add(_result("y"))
    await first.flush()

    second = RecentSelectionStore(blobs)
    loaded = await second.load_persisted()

    assert [item.id for item in loaded] == ["y", "x"]
    assert second.all() == loaded


@pytest.mark.asyncio
async def test_load_persisted_absent_data_yields_empty():
    store = RecentSelectionStore(MemoryBlobStore())

    assert await store.load_persisted() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [b"not json", b'{"id": "a"}', b'[{"name": "missing id"}]'],
)
async def test_load_persisted_corrupt_data_yields_empty(raw):
    store = RecentSelectionStore(MemoryBlobStore({"RecentSearches": raw}))

    assert await store.load_persisted() == []


@pytest.mark.asyncio
async def test_load_persisted_trims_and_dedupes_stored_list():
    items = [_result("a"), _result("b"), _result("a"), _result("c")]
    raw = json.dumps([item.model_dump() for item in items]).encode()
    store = RecentSelectionStore(MemoryBlobStore({"RecentSearches": raw}), max_items=2)

    loaded = await store.load_persisted()

    assert [item.id for item in loaded] == ["a", "b"]


@pytest.mark.asyncio
async def test_storage_failures_are_swallowed():
    blobs = FailingBlobStore()
    store = RecentSelectionStore(blobs)

    assert await store.load_persisted() == []
    store.add(_result("a"))
    await store.flush()

    assert blobs.save_attempts == 1
    assert [item.id for item in store.all()] == ["a"]


def test_add_without_event_loop_keeps_memory_state():
    blobs = MemoryBlobStore()
    store = RecentSelectionStore(blobs)

    store.add(_result("a"))

    assert [item.id for item in store.all()] == ["a"]
    assert blobs.blobs == {}


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        RecentSelectionStore(MemoryBlobStore(), max_items=0)
