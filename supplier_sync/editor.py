"""Explicit create/edit save for the supplier form."""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Callable, Optional

from .cache import EntityCache
from .conflict import ConflictGuard
from .errors import ValidationError, describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .permissions import EditPermission
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import SCORE_FIELDS, Supplier, generate_client_id


_log = get_logger("editor")

SavedCallback = Callable[[Supplier, bool], None]


def validate_form(form: Supplier) -> None:
    """Raise ``ValidationError`` when required form fields are missing."""

    if not form.vendor_name.strip():
        raise ValidationError("Supplier name is required")
    if not form.country.strip():
        raise ValidationError("Origin is required")


class SupplierEditor:
    """Validate, uniqueness-check and write one supplier form.

    New suppliers get a client-generated id before the create call. Nothing is
    written locally or remotely when validation or the PO check fails.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        cache: EntityCache,
        dispatcher: Dispatcher,
        notifier: Notifier,
        guard: ConflictGuard,
        permission: EditPermission,
        *,
        on_saved: Optional[SavedCallback] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._port = port
        self._cache = cache
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._guard = guard
        self._permission = permission
        self._on_saved = on_saved
        self._clock = clock
        self.is_saving = False

    def save(self, form: Supplier, *, is_new: bool) -> bool:
        if self.is_saving:
            _log.debug("Save ignored: previous save still running")
            return False
        if not self._permission.can_edit:
            self._notifier.notify("You do not have permission to edit suppliers", NoticeLevel.ERROR)
            return False
        try:
            validate_form(form)
        except ValidationError as exc:
            self._notifier.notify(str(exc), NoticeLevel.ERROR)
            return False

        candidate = form.copy()
        if is_new:
            candidate = replace(candidate, supplier_id=generate_client_id(self._clock()))
        elif not candidate.supplier_id:
            self._notifier.notify("Cannot update a supplier without an id", NoticeLevel.ERROR)
            return False

        self.is_saving = True
        self._guard.check(
            candidate.supplier_po,
            "" if is_new else candidate.supplier_id,
            on_clear=lambda: self._write(candidate, is_new),
            on_conflict=lambda _error: self._abort(),
        )
        return True

    def _abort(self) -> None:
        self.is_saving = False

    def _write(self, supplier: Supplier, is_new: bool) -> None:
        command = self._port.create if is_new else self._port.upsert
        _log.info("%s supplier %s", "Creating" if is_new else "Updating", supplier.supplier_id)
        self._dispatcher.submit(
            command,
            supplier,
            on_success=lambda _result: self._handle_saved(supplier, is_new),
            on_error=lambda exc: self._handle_failed(supplier, is_new, exc),
            label="create" if is_new else "update",
        )

    def _handle_saved(self, supplier: Supplier, is_new: bool) -> None:
        self.is_saving = False
        if is_new:
            self._notifier.notify("Supplier created successfully", NoticeLevel.SUCCESS)
        else:
            self._notifier.notify("Supplier updated successfully", NoticeLevel.SUCCESS)
            cached = self._cache.get(supplier.supplier_id)
            if cached is not None:
                scores = {name: getattr(cached, name) for name in SCORE_FIELDS}
                self._cache.put(replace(supplier, **scores))
        if self._on_saved is None:
            return
        try:
            self._on_saved(supplier, is_new)
        except Exception:
            _log.exception("Supplier saved callback failed")

    def _handle_failed(self, supplier: Supplier, is_new: bool, exc: Exception) -> None:
        self.is_saving = False
        action = "create" if is_new else "update"
        _log.warning("Failed to %s supplier %s: %s", action, supplier.supplier_id, describe_error(exc))
        self._notifier.notify(f"Failed to {action} supplier", NoticeLevel.ERROR)


__all__ = ["SupplierEditor", "validate_form"]
