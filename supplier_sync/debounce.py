"""Keyed debounce timers on the UI scheduler."""

from __future__ import annotations

from typing import Callable, Dict, Hashable, List

from .logging_utils import get_logger
from .scheduling import Scheduler


_log = get_logger("debounce")


class Debouncer:
    """Run only the most recent action per key, once its settle window passes quietly."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._jobs: Dict[Hashable, object] = {}

    def schedule(self, key: Hashable, delay_ms: int, action: Callable[[], None]) -> None:
        self.cancel(key)

        def _fire() -> None:
            if self._jobs.get(key) != handle_box[0]:
                return
            self._jobs.pop(key, None)
            try:
                action()
            except Exception:
                _log.exception("Debounced action for %r failed", key)

        handle_box: List[object] = [None]
        handle_box[0] = self._scheduler.call_later(delay_ms, _fire)
        self._jobs[key] = handle_box[0]

    def cancel(self, key: Hashable) -> None:
        handle = self._jobs.pop(key, None)
        if handle is not None:
            self._scheduler.cancel(handle)

    def cancel_all(self) -> None:
        for key in list(self._jobs):
            self.cancel(key)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._jobs

    def pending_keys(self) -> List[Hashable]:
        return list(self._jobs)


__all__ = ["Debouncer"]
