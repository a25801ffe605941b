"""Event-loop scheduling: timers on the UI loop and off-loop remote calls."""

from __future__ import annotations

import functools
import itertools
import queue
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from .logging_utils import WORKER_THREAD_PREFIX, get_logger


if TYPE_CHECKING:  # pragma: no cover
    import tkinter as tk

_log = get_logger("scheduling")

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> object:
        ...

    def cancel(self, handle: object) -> None:
        ...


class Dispatcher(Protocol):
    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        label: str = "",
    ) -> None:
        ...


class TkScheduler:
    """Scheduler backed by a widget's ``after``/``after_cancel``."""

    def __init__(self, widget: "tk.Misc") -> None:
        self._widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> object:
        return self._widget.after(max(0, int(delay_ms)), callback)

    def cancel(self, handle: object) -> None:
        if handle is None:
            return
        try:
            if self._widget.winfo_exists():
                self._widget.after_cancel(handle)
        except Exception:
            _log.debug("Timer %s already gone", handle)


class ThreadDispatcher:
    """Run blocking remote calls on worker threads.

    Outcomes are queued and drained by a poll job on the scheduler, so callbacks
    always execute on the loop thread.
    """

    def __init__(self, scheduler: Scheduler, *, poll_interval_ms: int = 50) -> None:
        self._scheduler = scheduler
        self._poll_interval_ms = max(10, int(poll_interval_ms))
        self._outcomes: "queue.Queue[tuple[Callable[[], None], str]]" = queue.Queue()
        self._poll_job: Optional[object] = None
        self._inflight = 0
        self._counter = itertools.count(1)
        self._closed = False
        self._closing = False

    @property
    def inflight(self) -> int:
        return self._inflight

    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        label: str = "",
    ) -> None:
        if self._closed:
            _log.debug("Dispatcher closed; dropping %s", label or func)
            return
        name = f"{WORKER_THREAD_PREFIX}-{label or 'command'}-{next(self._counter)}"
        self._inflight += 1
        thread = threading.Thread(
            target=self._run,
            args=(func, args, on_success, on_error, name),
            name=name,
            daemon=True,
        )
        thread.start()
        self._schedule_poll()

    def close_when_idle(self) -> None:
        """Deliver what is already running, then stop like ``close``."""

        if not self._inflight:
            self.close()
            return
        self._closing = True

    def close(self) -> None:
        """Stop delivering outcomes; calls already running finish unobserved."""

        self._closed = True
        if self._poll_job is not None:
            self._scheduler.cancel(self._poll_job)
            self._poll_job = None

    def _run(
        self,
        func: Callable[..., Any],
        args: tuple,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
        name: str,
    ) -> None:
        try:
            result = func(*args)
        except Exception as exc:
            _log.debug("%s failed: %s", name, exc)
            deliver: Callable[[], None] = functools.partial(on_error, exc) if on_error else _noop
        else:
            deliver = functools.partial(on_success, result) if on_success else _noop
        self._outcomes.put((deliver, name))

    def _schedule_poll(self) -> None:
        if self._poll_job is not None or self._closed:
            return
        self._poll_job = self._scheduler.call_later(self._poll_interval_ms, self._drain)

    def _drain(self) -> None:
        self._poll_job = None
        while True:
            try:
                deliver, name = self._outcomes.get_nowait()
            except queue.Empty:
                break
            self._inflight = max(0, self._inflight - 1)
            try:
                deliver()
            except Exception:
                _log.exception("Callback for %s failed", name)
        if self._inflight:
            self._schedule_poll()
        elif self._closing:
            self.close()


def _noop() -> None:
    return None


__all__ = ["Dispatcher", "Scheduler", "ThreadDispatcher", "TkScheduler"]
