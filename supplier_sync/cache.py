"""In-memory mirror of the last search result set."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .logging_utils import get_logger
from .state import Supplier


_log = get_logger("cache")

Listener = Callable[[], None]


class EntityCache:
    """Insertion-ordered suppliers keyed by ``supplier_id``.

    Mutated only by a wholesale ``replace`` (search results) and single-field
    ``patch`` calls (edits). Listeners run after every mutation.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Supplier] = {}
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, supplier_id: object) -> bool:
        return supplier_id in self._items

    def __iter__(self) -> Iterator[Supplier]:
        return iter(list(self._items.values()))

    def ids(self) -> List[str]:
        return list(self._items)

    def get(self, supplier_id: str) -> Optional[Supplier]:
        return self._items.get(supplier_id)

    def snapshot(self, supplier_id: str) -> Optional[Supplier]:
        """Return a detached copy of the current record."""

        current = self._items.get(supplier_id)
        return current.copy() if current is not None else None

    def replace(self, suppliers: Iterable[Supplier]) -> None:
        items: Dict[str, Supplier] = {}
        dropped = 0
        for supplier in suppliers:
            if not supplier.supplier_id or supplier.supplier_id in items:
                dropped += 1
                continue
            items[supplier.supplier_id] = supplier
        if dropped:
            _log.debug("Dropped %s supplier row(s) without a unique id", dropped)
        self._items = items
        self._notify()

    def clear(self) -> None:
        if not self._items:
            return
        self._items = {}
        self._notify()

    def patch(self, supplier_id: str, field_name: str, value: str) -> bool:
        current = self._items.get(supplier_id)
        if current is None:
            return False
        self._items[supplier_id] = current.with_field(field_name, value)
        self._notify()
        return True

    def put(self, supplier: Supplier) -> bool:
        """Overwrite an element already present; absent ids are ignored."""

        if supplier.supplier_id not in self._items:
            return False
        self._items[supplier.supplier_id] = supplier
        self._notify()
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                _log.exception("Cache listener failed")


__all__ = ["EntityCache"]
