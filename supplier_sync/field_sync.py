"""Per-supplier debounced autosave of field edits."""

from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional

from .cache import EntityCache
from .conflict import ConflictGuard
from .debounce import Debouncer
from .errors import ConflictError, describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .permissions import EditPermission
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import EDITABLE_FIELDS, UNIQUE_FIELD, PendingEdit, Supplier, SyncStatus


_log = get_logger("field_sync")

DEFAULT_SAVE_DELAY_MS = 1000

StatusListener = Callable[[str], None]


class FieldSync:
    """Coalesce field edits per supplier into one whole-record upsert per settle window.

    Edits land in the cache immediately. The debounce key is the supplier id, so
    edits to different suppliers never wait on each other, while a supplier never
    has more than one upsert in flight: a commit that comes due during a save is
    queued and re-run when that save completes.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        cache: EntityCache,
        debouncer: Debouncer,
        dispatcher: Dispatcher,
        notifier: Notifier,
        guard: ConflictGuard,
        permission: EditPermission,
        *,
        delay_ms: int = DEFAULT_SAVE_DELAY_MS,
        clock: Callable[[], float] = time.monotonic,
        on_status_changed: Optional[StatusListener] = None,
    ) -> None:
        self._port = port
        self._cache = cache
        self._debouncer = debouncer
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._guard = guard
        self._permission = permission
        self.delay_ms = delay_ms
        self._clock = clock
        self._on_status_changed = on_status_changed

        self.status = SyncStatus()
        self._pending: Dict[str, Dict[str, PendingEdit]] = {}
        self._inflight: Dict[str, Dict[str, PendingEdit]] = {}
        self._confirmed: Dict[str, Supplier] = {}
        self._queued: set[str] = set()
        self._reconciling = False
        self._cache.subscribe(self._reconcile_with_cache)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def is_dirty(self, supplier_id: str) -> bool:
        return supplier_id in self.status.dirty

    def is_saving(self, supplier_id: str) -> bool:
        return supplier_id in self.status.saving

    def is_busy(self, supplier_id: str) -> bool:
        """True from the first edit until the resulting save resolves."""

        return (
            supplier_id in self.status.dirty
            or supplier_id in self.status.saving
            or supplier_id in self._queued
        )

    def saving_ids(self) -> List[str]:
        return list(self.status.saving)

    def failed_ids(self) -> List[str]:
        return list(self.status.failed)

    def pending_edits(self, supplier_id: str) -> Dict[str, PendingEdit]:
        return dict(self._pending.get(supplier_id, {}))

    def next_commit_at(self, supplier_id: str) -> Optional[float]:
        """Clock time at which the pending edits of a supplier are due, if any."""

        edits = self._pending.get(supplier_id)
        if not edits:
            return None
        return max(edit.scheduled_at for edit in edits.values())

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def on_field_edit(self, supplier_id: str, field_name: str, value: str) -> bool:
        if not self._permission.can_edit:
            _log.debug("Edit of %s.%s ignored: editing not permitted", supplier_id, field_name)
            return False
        if field_name not in EDITABLE_FIELDS:
            _log.warning("Edit of unknown or read-only field %r ignored", field_name)
            return False
        if supplier_id not in self._cache:
            _log.debug("Edit of %s ignored: supplier not in view", supplier_id)
            return False

        if supplier_id not in self._confirmed:
            baseline = self._cache.snapshot(supplier_id)
            if baseline is not None:
                self._confirmed[supplier_id] = baseline

        text = "" if value is None else str(value)
        self._patch(supplier_id, field_name, text)
        edits = self._pending.setdefault(supplier_id, {})
        edits[field_name] = PendingEdit(
            supplier_id=supplier_id,
            field_name=field_name,
            value=text,
            scheduled_at=self._clock() + self.delay_ms / 1000.0,
        )
        self.status.dirty.add(supplier_id)
        self._debouncer.schedule(supplier_id, self.delay_ms, lambda: self.commit(supplier_id))
        self._emit(supplier_id)
        return True

    def commit(self, supplier_id: str) -> None:
        if supplier_id not in self._cache:
            _log.debug("Commit for %s skipped: supplier left the view", supplier_id)
            self.discard(supplier_id)
            return
        if supplier_id in self.status.saving:
            _log.debug("Save for %s in flight; queueing the next commit", supplier_id)
            self._queued.add(supplier_id)
            return

        edits = self._pending.pop(supplier_id, {})
        if not edits and supplier_id not in self.status.dirty:
            return
        self.status.dirty.discard(supplier_id)
        self.status.saving.add(supplier_id)
        self._inflight[supplier_id] = edits
        self._emit(supplier_id)

        if UNIQUE_FIELD in edits:
            current = self._cache.get(supplier_id)
            value = current.supplier_po if current is not None else ""
            self._guard.check(
                value,
                supplier_id,
                on_clear=lambda: self._dispatch_upsert(supplier_id),
                on_conflict=lambda error: self._reject_conflict(supplier_id, error),
            )
            return
        self._dispatch_upsert(supplier_id)

    def flush(self) -> None:
        """Commit every supplier with unsaved edits now instead of waiting."""

        for supplier_id in list(self.status.dirty):
            self._debouncer.cancel(supplier_id)
            self.commit(supplier_id)

    def retry_failed(self) -> None:
        for supplier_id in list(self.status.failed):
            if supplier_id not in self._cache:
                continue
            self.status.dirty.add(supplier_id)
            self._debouncer.cancel(supplier_id)
            self.commit(supplier_id)

    def discard(self, supplier_id: str) -> None:
        """Forget timers and unsaved edits for a supplier removed from view."""

        self._debouncer.cancel(supplier_id)
        dropped = self._pending.pop(supplier_id, None)
        if dropped:
            _log.debug("Dropped %s unsaved edit(s) for %s", len(dropped), supplier_id)
        self.status.dirty.discard(supplier_id)
        self.status.failed.discard(supplier_id)
        self._queued.discard(supplier_id)
        self._inflight.pop(supplier_id, None)
        self._confirmed.pop(supplier_id, None)

    def discard_missing(self) -> None:
        tracked = set(self._pending) | set(self._inflight) | self.status.dirty | self.status.failed | set(self._confirmed)
        for supplier_id in tracked:
            if supplier_id not in self._cache:
                self.discard(supplier_id)

    def close(self) -> None:
        for supplier_id in list(self._pending):
            self._debouncer.cancel(supplier_id)
        self._pending.clear()
        self._inflight.clear()
        self._queued.clear()
        self._confirmed.clear()
        self.status.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _dispatch_upsert(self, supplier_id: str) -> None:
        snapshot = self._cache.snapshot(supplier_id)
        if snapshot is None:
            _log.debug("Upsert for %s skipped: supplier left the view", supplier_id)
            self._finish(supplier_id)
            return
        _log.debug("Saving supplier %s", supplier_id)
        self._dispatcher.submit(
            self._port.upsert,
            snapshot,
            on_success=lambda _result: self._handle_saved(supplier_id, snapshot),
            on_error=lambda exc: self._handle_failed(supplier_id, exc),
            label="upsert",
        )

    def _handle_saved(self, supplier_id: str, snapshot: Supplier) -> None:
        if supplier_id not in self._cache:
            _log.debug("Save result for %s discarded: supplier left the view", supplier_id)
        else:
            self._confirmed[supplier_id] = snapshot
            self.status.failed.discard(supplier_id)
        self._finish(supplier_id)

    def _handle_failed(self, supplier_id: str, exc: Exception) -> None:
        if supplier_id not in self._cache:
            _log.debug("Save failure for %s discarded: supplier left the view (%s)", supplier_id, exc)
            self._finish(supplier_id)
            return
        _log.warning("Failed to save supplier %s: %s", supplier_id, describe_error(exc))
        self.status.failed.add(supplier_id)
        self._requeue(supplier_id, self._inflight.get(supplier_id, {}))
        current = self._cache.get(supplier_id)
        name = current.display_name if current is not None else supplier_id
        self._notifier.notify(f"Failed to save supplier {name}", NoticeLevel.ERROR)
        self._finish(supplier_id)

    def _reject_conflict(self, supplier_id: str, error: ConflictError) -> None:
        baseline = self._confirmed.get(supplier_id)
        previous = baseline.supplier_po if baseline is not None else ""
        current = self._cache.get(supplier_id)
        if current is not None and current.supplier_po.strip() == error.value:
            self._patch(supplier_id, UNIQUE_FIELD, previous)

        # The rest of the window still has to reach the store, minus the PO.
        others = {
            name: edit
            for name, edit in self._inflight.get(supplier_id, {}).items()
            if name != UNIQUE_FIELD
        }
        if others and current is not None:
            _log.debug("Re-queueing %s edit(s) for %s after PO conflict", len(others), supplier_id)
            self._requeue(supplier_id, others)
            self.status.dirty.add(supplier_id)
            self._queued.add(supplier_id)
        self._finish(supplier_id)

    def _requeue(self, supplier_id: str, edits: Dict[str, PendingEdit]) -> None:
        """Put unsent edits back under newer pending ones."""

        if not edits:
            return
        pending = self._pending.setdefault(supplier_id, {})
        for name, edit in edits.items():
            pending.setdefault(name, edit)

    def _finish(self, supplier_id: str) -> None:
        self._inflight.pop(supplier_id, None)
        self.status.saving.discard(supplier_id)
        if supplier_id in self._queued:
            self._queued.discard(supplier_id)
            if supplier_id in self._cache and not self._debouncer.is_pending(supplier_id):
                self.commit(supplier_id)
        self._emit(supplier_id)

    def _patch(self, supplier_id: str, field_name: str, value: str) -> None:
        self._reconciling = True
        try:
            self._cache.patch(supplier_id, field_name, value)
        finally:
            self._reconciling = False

    def _reconcile_with_cache(self) -> None:
        """Keep unsaved and in-flight local values on top of a refreshed result set."""

        if self._reconciling:
            return
        self.discard_missing()
        for supplier_id in list(set(self._inflight) | set(self._pending)):
            current = self._cache.get(supplier_id)
            if current is None:
                continue
            edits = dict(self._inflight.get(supplier_id, {}))
            edits.update(self._pending.get(supplier_id, {}))
            for edit in edits.values():
                if getattr(current, edit.field_name) != edit.value:
                    self._patch(supplier_id, edit.field_name, edit.value)

    def _emit(self, supplier_id: str) -> None:
        if self._on_status_changed is None:
            return
        try:
            self._on_status_changed(supplier_id)
        except Exception:
            _log.exception("Status listener failed for %s", supplier_id)


__all__ = ["DEFAULT_SAVE_DELAY_MS", "FieldSync"]
