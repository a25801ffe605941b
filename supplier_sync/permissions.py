"""Injected edit capability with change notifications."""

from __future__ import annotations

from typing import Callable, List

from .logging_utils import get_logger


_log = get_logger("permissions")

PermissionListener = Callable[[bool], None]


class EditPermission:
    """Holds the host's "can manage suppliers" decision.

    The host owns the policy and pushes updates through ``set``; components
    read ``can_edit`` and may subscribe to changes.
    """

    def __init__(self, can_edit: bool = False) -> None:
        self._can_edit = bool(can_edit)
        self._listeners: List[PermissionListener] = []

    @property
    def can_edit(self) -> bool:
        return self._can_edit

    def set(self, can_edit: bool) -> None:
        value = bool(can_edit)
        if value == self._can_edit:
            return
        self._can_edit = value
        _log.debug("Edit permission changed to %s", value)
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                _log.exception("Permission listener failed")

    def subscribe(self, listener: PermissionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


__all__ = ["EditPermission"]
