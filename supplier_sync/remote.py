"""Abstract boundary to the remote supplier store.

Every method is a blocking call. Components never invoke them on the UI loop
directly; they hand them to a dispatcher (see ``scheduling.ThreadDispatcher``)
which runs them on a worker thread and delivers the outcome back on the loop.
Implementations raise ``TransportError`` for remote failures and
``ValidationError`` when the store rejects the input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .state import ImportResult, ReferenceEntry, ReferenceKind, Supplier


class RemoteCommandPort(ABC):
    @abstractmethod
    def search(self, query: str) -> List[Supplier]:
        """Return suppliers matching ``query`` in store order. Never called with empty text."""

    @abstractmethod
    def upsert(self, supplier: Supplier) -> None:
        """Replace the whole stored record with ``supplier``."""

    @abstractmethod
    def create(self, supplier: Supplier) -> None:
        """Insert a new record carrying a client-generated id."""

    @abstractmethod
    def check_uniqueness(self, value: str, exclude_id: str) -> Optional[Supplier]:
        """Return another supplier already using PO ``value``, if any."""

    @abstractmethod
    def fetch_reference_list(self, kind: ReferenceKind) -> List[ReferenceEntry]:
        ...

    @abstractmethod
    def bulk_validate(self, payload: bytes) -> str:
        """Check a spreadsheet batch without writing; return a summary."""

    @abstractmethod
    def bulk_commit(self, payload: bytes) -> ImportResult:
        """Upsert every row of a spreadsheet batch and return the counters."""

    @abstractmethod
    def export_all(self) -> bytes:
        """Return every supplier as spreadsheet bytes."""


__all__ = ["RemoteCommandPort"]
