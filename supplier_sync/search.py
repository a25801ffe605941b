"""Debounced search-as-you-type feeding the entity cache."""

from __future__ import annotations

from typing import Callable, List, Optional

from .cache import EntityCache
from .debounce import Debouncer
from .errors import describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import Supplier


_log = get_logger("search")

SEARCH_KEY = "search"
DEFAULT_SEARCH_DELAY_MS = 300


class SupplierSearch:
    """Turn query edits into at most one applied search per settled pause.

    Every dispatched request carries a sequence number; only the response to
    the newest request may touch the cache.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        cache: EntityCache,
        debouncer: Debouncer,
        dispatcher: Dispatcher,
        notifier: Notifier,
        *,
        delay_ms: int = DEFAULT_SEARCH_DELAY_MS,
        on_results: Optional[Callable[[], None]] = None,
    ) -> None:
        self._port = port
        self._cache = cache
        self._debouncer = debouncer
        self._dispatcher = dispatcher
        self._notifier = notifier
        self.delay_ms = delay_ms
        self._on_results = on_results
        self._sequence = 0
        self._last_query = ""
        self.is_loading = False

    @property
    def last_query(self) -> str:
        return self._last_query

    @property
    def sequence(self) -> int:
        return self._sequence

    def on_query_change(self, text: str) -> None:
        query = (text or "").strip()
        if not query:
            self._debouncer.cancel(SEARCH_KEY)
            self._sequence += 1
            self._last_query = ""
            self.is_loading = False
            self._cache.clear()
            self._emit()
            return
        self._debouncer.schedule(SEARCH_KEY, self.delay_ms, lambda: self.search(text))

    def search(self, text: str) -> None:
        query = (text or "").strip()
        if not query:
            return
        self._sequence += 1
        sequence = self._sequence
        self._last_query = query
        self.is_loading = True
        _log.debug("Search #%s dispatched for %r", sequence, query)
        self._dispatcher.submit(
            self._port.search,
            query,
            on_success=lambda results: self._handle_results(sequence, query, results),
            on_error=lambda exc: self._handle_error(sequence, query, exc),
            label="search",
        )

    def refresh(self) -> None:
        """Re-run the last query right away, e.g. after an import."""

        self._debouncer.cancel(SEARCH_KEY)
        if self._last_query:
            self.search(self._last_query)

    def cancel(self) -> None:
        self._debouncer.cancel(SEARCH_KEY)

    def _is_stale(self, sequence: int) -> bool:
        return sequence != self._sequence

    def _handle_results(self, sequence: int, query: str, results: List[Supplier]) -> None:
        if self._is_stale(sequence):
            _log.debug("Discarding stale results for %r (#%s, latest #%s)", query, sequence, self._sequence)
            return
        self.is_loading = False
        self._cache.replace(results)
        _log.debug("Search #%s for %r returned %s supplier(s)", sequence, query, len(self._cache))
        self._emit()

    def _handle_error(self, sequence: int, query: str, exc: Exception) -> None:
        if self._is_stale(sequence):
            _log.debug("Ignoring failure of stale search %r: %s", query, exc)
            return
        self.is_loading = False
        _log.warning("Supplier search for %r failed: %s", query, describe_error(exc))
        self._cache.clear()
        self._notifier.notify("Failed to search suppliers", NoticeLevel.ERROR)
        self._emit()

    def _emit(self) -> None:
        if self._on_results is None:
            return
        try:
            self._on_results()
        except Exception:
            _log.exception("Search results listener failed")


__all__ = ["DEFAULT_SEARCH_DELAY_MS", "SEARCH_KEY", "SupplierSearch"]
