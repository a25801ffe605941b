"""Best-effort PO uniqueness check run before a supplier is written."""

from __future__ import annotations

from typing import Callable, Optional

from .errors import ConflictError, describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import Supplier


_log = get_logger("conflict")


class ConflictGuard:
    """Ask the store whether another supplier already uses a PO code.

    The check and the later write are not atomic; a concurrent writer can
    still slip in between them.
    """

    def __init__(self, port: RemoteCommandPort, dispatcher: Dispatcher, notifier: Notifier) -> None:
        self._port = port
        self._dispatcher = dispatcher
        self._notifier = notifier

    def check(
        self,
        value: str,
        exclude_id: str,
        on_clear: Callable[[], None],
        on_conflict: Optional[Callable[[ConflictError], None]] = None,
    ) -> None:
        po = (value or "").strip()
        if not po:
            on_clear()
            return

        def _handle_result(existing: Optional[Supplier]) -> None:
            if existing is None or existing.supplier_id == exclude_id:
                on_clear()
                return
            error = ConflictError(po, existing)
            _log.info(
                "PO %s rejected for %s: already used by %s",
                po,
                exclude_id or "<new supplier>",
                existing.supplier_id,
            )
            self._notifier.notify(str(error), NoticeLevel.ERROR)
            if on_conflict is not None:
                on_conflict(error)

        def _handle_error(exc: Exception) -> None:
            _log.warning("PO uniqueness check failed, continuing without it: %s", describe_error(exc))
            on_clear()

        self._dispatcher.submit(
            self._port.check_uniqueness,
            po,
            exclude_id or "",
            on_success=_handle_result,
            on_error=_handle_error,
            label="check-po",
        )


__all__ = ["ConflictGuard"]
