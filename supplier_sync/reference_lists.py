"""Read-only lookup lists loaded once per surface activation."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from .errors import describe_error
from .logging_utils import get_logger
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import ReferenceEntry, ReferenceKind, Supplier


_log = get_logger("reference_lists")

RESPONSIBLE_FIELDS: Dict[ReferenceKind, str] = {
    ReferenceKind.PLANNER: "planner",
    ReferenceKind.CONTINUITY: "continuity",
    ReferenceKind.SOURCING: "sourcing",
    ReferenceKind.SQIE: "sqie",
}


class ReferenceLists:
    """Per-activation cache of planner, owner, BU and category lists.

    Each kind loads independently; a kind that fails stays empty.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        dispatcher: Dispatcher,
        *,
        on_loaded: Optional[Callable[[ReferenceKind], None]] = None,
    ) -> None:
        self._port = port
        self._dispatcher = dispatcher
        self._on_loaded = on_loaded
        self._entries: Dict[ReferenceKind, List[ReferenceEntry]] = {}
        self._outstanding: set[ReferenceKind] = set()
        self._generation = 0

    @property
    def is_loading(self) -> bool:
        return bool(self._outstanding)

    def load(self, kinds: Iterable[ReferenceKind] = tuple(ReferenceKind)) -> None:
        self._generation += 1
        generation = self._generation
        self._entries = {}
        self._outstanding = set(kinds)
        for kind in list(self._outstanding):
            self._dispatcher.submit(
                self._port.fetch_reference_list,
                kind,
                on_success=lambda entries, k=kind: self._store(generation, k, entries),
                on_error=lambda exc, k=kind: self._fail(generation, k, exc),
                label=f"list-{kind.value}",
            )

    def release(self) -> None:
        """Drop lists when the owning surface closes."""

        self._generation += 1
        self._entries = {}
        self._outstanding = set()

    def entries(self, kind: ReferenceKind) -> List[ReferenceEntry]:
        return list(self._entries.get(kind, []))

    def names(self, kind: ReferenceKind) -> List[str]:
        return [entry.name for entry in self._entries.get(kind, [])]

    def find(self, kind: ReferenceKind, name: str) -> Optional[ReferenceEntry]:
        target = (name or "").strip().casefold()
        if not target:
            return None
        for entry in self._entries.get(kind, []):
            if entry.name.casefold() == target:
                return entry
        return None

    def responsibles_for(self, supplier: Supplier) -> Dict[ReferenceKind, Optional[ReferenceEntry]]:
        """Join the supplier's role-assignment names against the loaded lists."""

        return {
            kind: self.find(kind, getattr(supplier, field_name))
            for kind, field_name in RESPONSIBLE_FIELDS.items()
        }

    def _store(self, generation: int, kind: ReferenceKind, entries: List[ReferenceEntry]) -> None:
        if generation != self._generation:
            return
        self._entries[kind] = list(entries)
        self._outstanding.discard(kind)
        _log.debug("Loaded %s %s entr(ies)", len(entries), kind.value)
        self._emit(kind)

    def _fail(self, generation: int, kind: ReferenceKind, exc: Exception) -> None:
        if generation != self._generation:
            return
        self._entries[kind] = []
        self._outstanding.discard(kind)
        _log.warning("Failed to load %s list: %s", kind.value, describe_error(exc))
        self._emit(kind)

    def _emit(self, kind: ReferenceKind) -> None:
        if self._on_loaded is None:
            return
        try:
            self._on_loaded(kind)
        except Exception:
            _log.exception("Reference list listener failed")


__all__ = ["RESPONSIBLE_FIELDS", "ReferenceLists"]
