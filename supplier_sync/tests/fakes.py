"""Deterministic stand-ins for the UI loop, the dispatcher and the remote store."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from supplier_sync.errors import ValidationError
from supplier_sync.notifications import NoticeLevel
from supplier_sync.remote import RemoteCommandPort
from supplier_sync.state import ImportResult, ReferenceEntry, ReferenceKind, Supplier


class FakeScheduler:
    """Virtual-clock scheduler; time only moves through ``advance``."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._ids = itertools.count(1)
        self._timers: Dict[int, Tuple[int, Callable[[], None]]] = {}

    @property
    def pending(self) -> int:
        return len(self._timers)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> object:
        handle = next(self._ids)
        self._timers[handle] = (self.now_ms + max(0, int(delay_ms)), callback)
        return handle

    def cancel(self, handle: object) -> None:
        self._timers.pop(handle, None)  # type: ignore[arg-type]

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [
                (when, handle)
                for handle, (when, _callback) in self._timers.items()
                if when <= target
            ]
            if not due:
                break
            when, handle = min(due)
            _when, callback = self._timers.pop(handle)
            self.now_ms = when
            callback()
        self.now_ms = target


@dataclass
class PendingCall:
    func: Callable[..., Any]
    args: Tuple[Any, ...]
    on_success: Optional[Callable[[Any], None]]
    on_error: Optional[Callable[[Exception], None]]
    label: str


class DeferredDispatcher:
    """Queue submitted calls; the test decides when, and in which order, they finish."""

    def __init__(self) -> None:
        self.calls: List[PendingCall] = []

    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        label: str = "",
    ) -> None:
        self.calls.append(PendingCall(func, args, on_success, on_error, label))

    def pending(self, label: Optional[str] = None) -> List[PendingCall]:
        return [call for call in self.calls if label is None or call.label == label]

    def resolve(self, call: Optional[PendingCall] = None) -> None:
        target = call or self.calls[0]
        self.calls.remove(target)
        try:
            result = target.func(*target.args)
        except Exception as exc:
            if target.on_error is not None:
                target.on_error(exc)
            return
        if target.on_success is not None:
            target.on_success(result)

    def run_all(self) -> None:
        while self.calls:
            self.resolve()


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: List[Tuple[str, NoticeLevel]] = []

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        self.notices.append((message, NoticeLevel(level)))

    def messages(self, level: Optional[NoticeLevel] = None) -> List[str]:
        return [message for message, lvl in self.notices if level is None or lvl is level]


class FakePort(RemoteCommandPort):
    """In-memory store recording every command it receives."""

    def __init__(self, suppliers: Tuple[Supplier, ...] = ()) -> None:
        self.records: Dict[str, Supplier] = {s.supplier_id: s.copy() for s in suppliers}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.failures: Dict[str, Exception] = {}
        self.reference: Dict[ReferenceKind, List[ReferenceEntry]] = {}
        self.commit_result = ImportResult()
        self.export_payload = b"PK\x03\x04suppliers"

    def calls_named(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for called, args in self.calls if called == name]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def search(self, query: str) -> List[Supplier]:
        self._record("search", query)
        needle = query.casefold()
        matches = [
            supplier.copy()
            for supplier in self.records.values()
            if needle in supplier.vendor_name.casefold()
            or needle in supplier.supplier_id.casefold()
            or needle in supplier.supplier_po.casefold()
        ]
        return sorted(matches, key=lambda supplier: supplier.vendor_name)

    def upsert(self, supplier: Supplier) -> None:
        self._record("upsert", supplier)
        self.records[supplier.supplier_id] = supplier.copy()

    def create(self, supplier: Supplier) -> None:
        self._record("create", supplier)
        self.records[supplier.supplier_id] = supplier.copy()

    def check_uniqueness(self, value: str, exclude_id: str) -> Optional[Supplier]:
        self._record("check_uniqueness", value, exclude_id)
        for supplier in self.records.values():
            if supplier.supplier_po == value and supplier.supplier_id != exclude_id:
                return supplier.copy()
        return None

    def fetch_reference_list(self, kind: ReferenceKind) -> List[ReferenceEntry]:
        self._record("fetch_reference_list", kind)
        return list(self.reference.get(kind, []))

    def bulk_validate(self, payload: bytes) -> str:
        self._record("bulk_validate", payload)
        if b"_control" not in payload:
            raise ValidationError("Control sheet '_control' not found. Use a file exported by the system.")
        rows = payload.count(b"\n")
        return f"File is valid! {rows} records found."

    def bulk_commit(self, payload: bytes) -> ImportResult:
        self._record("bulk_commit", payload)
        return self.commit_result

    def export_all(self) -> bytes:
        self._record("export_all")
        return self.export_payload


def make_supplier(supplier_id: str, name: str, **values: str) -> Supplier:
    return Supplier(supplier_id=supplier_id, vendor_name=name, **values)
