"""Debounced, cache-first coordination of location searches."""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

from mapsearch.config import SearchSettings, get_settings
from mapsearch.domain.models import GeoRegion, QueryState, SearchResult
from mapsearch.i18n import I18nService
from mapsearch.logging import logger
from mapsearch.providers.base import BasicSearch, BiasedSearch
from mapsearch.services.cancellation import CancellationToken, guarded
from mapsearch.services.exceptions import SearchCancelled
from mapsearch.services.recent_selections import RecentSelectionStore
from mapsearch.services.result_cache import ResultCache
from mapsearch.storage.blob_store import BlobStore

QUICK_SUGGESTIONS = (
    "restaurant",
    "gas station",
    "coffee",
    "pharmacy",
    "grocery store",
    "hospital",
    "bank",
    "atm",
    "parking",
    "hotel",
    "airport",
)

StateListener = Callable[[QueryState], None]


class QueryCoordinator:
    """Turns keystrokes into at most one live provider call at a time.

    Text changes are debounced; each debounce fire first serves cached
    results, then starts a fresh provider search that supersedes whatever was
    still in flight. Every search carries its own ``CancellationToken`` and a
    superseded search never touches the cache or the published state.
    Provider failures end up in ``QueryState.error_message``; nothing is
    raised to the caller.

    All commands must be issued from the event loop that runs the searches.
    """

    def __init__(
        self,
        provider: BasicSearch,
        recent: RecentSelectionStore,
        *,
        cache: ResultCache | None = None,
        settings: SearchSettings | None = None,
        i18n: I18nService | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider
        self.recent = recent
        self.cache = cache or ResultCache.from_settings(self.settings.cache)
        self.i18n = i18n or I18nService(default_locale=self.settings.default_language)
        self.debounce_delay = self.settings.debounce_delay_seconds

        self._state = QueryState(recent_searches=tuple(recent.all()))
        self._listeners: list[StateListener] = []
        self._generation = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._search_task: asyncio.Task[None] | None = None
        self._search_token: CancellationToken | None = None

    @classmethod
    async def create(
        cls,
        provider: BasicSearch,
        blob_store: BlobStore,
        *,
        settings: SearchSettings | None = None,
        cache: ResultCache | None = None,
        i18n: I18nService | None = None,
    ) -> "QueryCoordinator":
        """Build a coordinator with the persisted recent selections loaded."""

        settings = settings or get_settings()
        recent = RecentSelectionStore(
            blob_store,
            key=settings.recent.storage_key,
            max_items=settings.recent.max_items,
        )
        await recent.load_persisted()
        return cls(provider, recent, cache=cache, settings=settings, i18n=i18n)

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- commands ----------------------------------------------------------

    def set_query_text(self, text: str) -> None:
        self._generation += 1
        self._cancel_debounce()
        if not text.strip():
            self._cancel_search("cleared")
            self._update(
                text=text,
                results=(),
                error_message=None,
                is_loading=False,
                selected=None,
                is_active=False,
            )
            return

        if self._cancel_search("superseded"):
            self._update(text=text, is_loading=False)
        else:
            self._update(text=text)
        loop = asyncio.get_running_loop()
        self._debounce_task = loop.create_task(self._debounce(self._generation))

    def perform_search(self) -> None:
        self._generation += 1
        self._cancel_debounce()
        self._begin_search(region=None)

    def search_with_region(self, region: GeoRegion) -> None:
        self._generation += 1
        self._cancel_debounce()
        self._begin_search(region=region)

    def select_result(self, result: SearchResult) -> None:
        self._generation += 1
        self._cancel_debounce()
        self.recent.add(result)
        self._update(
            selected=result,
            is_active=False,
            is_loading=self._search_running(),
            recent_searches=tuple(self.recent.all()),
        )

    def cancel(self) -> None:
        self._generation += 1
        self._cancel_debounce()
        self._cancel_search("cancelled")
        self._update(
            text="",
            results=(),
            error_message=None,
            selected=None,
            is_loading=False,
            is_active=False,
        )

    def clear_results(self) -> None:
        self._update(results=(), error_message=None, selected=None, is_active=False)

    def show_recent_when_empty(self) -> None:
        if not self._state.is_search_empty:
            return
        self._update(results=tuple(self.recent.all()), is_active=True)

    def quick_suggestions(self) -> list[str]:
        query = self._state.text.strip().lower()
        if not query:
            return []
        matches = [item for item in QUICK_SUGGESTIONS if query in item]
        return matches[: self.settings.max_suggestions]

    async def settle(self) -> None:
        """Wait until no debounce timer or search task is pending."""

        while True:
            pending = {
                task
                for task in (self._debounce_task, self._search_task)
                if task is not None and not task.done()
            }
            if not pending:
                return
            await asyncio.wait(pending)

    async def aclose(self) -> None:
        self._generation += 1
        pending = {
            task
            for task in (self._debounce_task, self._search_task)
            if task is not None and not task.done()
        }
        self._cancel_debounce()
        self._cancel_search("closed")
        if pending:
            await asyncio.wait(pending)
        await self.recent.flush()

    # -- search cycle ------------------------------------------------------

    async def _debounce(self, generation: int) -> None:
        await asyncio.sleep(self.debounce_delay)
        if generation != self._generation:
            return
        self._begin_search(region=None)

    def _begin_search(self, region: GeoRegion | None) -> None:
        query = self._state.text.strip()
        if not query:
            self.clear_results()
            return

        cached = self.cache.get(query)
        self._cancel_search("superseded")
        token = CancellationToken()
        self._search_token = token

        had_cached = bool(cached)
        changes: dict = {"is_active": True, "error_message": None, "is_loading": not had_cached}
        if cached is not None:
            changes["results"] = cached
        self._update(**changes)

        logger.debug(
            "search_started",
            query=query,
            cached=had_cached,
            biased=region is not None,
        )
        loop = asyncio.get_running_loop()
        self._search_task = loop.create_task(
            self._run_search(query, region, token, had_cached=had_cached)
        )

    async def _run_search(
        self,
        query: str,
        region: GeoRegion | None,
        token: CancellationToken,
        *,
        had_cached: bool,
    ) -> None:
        try:
            results = await guarded(token, lambda: self._call_provider(query, region))
        except SearchCancelled:
            logger.debug("search_discarded", query=query, reason=token.reason)
            return
        except Exception as exc:
            if token.cancelled:
                logger.debug("search_discarded", query=query, reason=token.reason)
                return
            self._handle_failure(query, exc, had_cached=had_cached)
            return

        self.cache.put(query, results)
        self._update(results=tuple(results), error_message=None, is_loading=False)
        logger.debug("search_committed", query=query, count=len(results))

    async def _call_provider(self, query: str, region: GeoRegion | None) -> Sequence[SearchResult]:
        provider = self.provider
        if region is not None and isinstance(provider, BiasedSearch):
            return await provider.search_in_region(query, region)
        return await provider.search(query)

    def _handle_failure(self, query: str, exc: Exception, *, had_cached: bool) -> None:
        if had_cached:
            logger.info(
                "search_failed_cached_kept",
                query=query,
                error_type=exc.__class__.__name__,
                error=str(exc),
            )
            self._update(is_loading=False)
            return

        logger.warning(
            "search_failed",
            query=query,
            error_type=exc.__class__.__name__,
            error=str(exc),
        )
        self._update(results=(), error_message=self.i18n.translate_error(exc), is_loading=False)

    def _cancel_debounce(self) -> None:
        task, self._debounce_task = self._debounce_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _search_running(self) -> bool:
        return self._search_task is not None and not self._search_task.done()

    def _cancel_search(self, reason: str) -> bool:
        """Cancel the live search, if any; returns whether one was interrupted."""

        interrupted = self._search_running()
        token, self._search_token = self._search_token, None
        if token is not None:
            token.cancel(reason)
        task, self._search_task = self._search_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        return interrupted

    def _update(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("state_listener_failed", listener=getattr(listener, "__name__", repr(listener)))


__all__ = ["QueryCoordinator", "QUICK_SUGGESTIONS", "StateListener"]
