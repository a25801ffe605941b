"""User-visible notices (the host renders them as toasts)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from .logging_utils import get_logger


_log = get_logger("notifications")


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    message: str
    level: NoticeLevel = NoticeLevel.INFO


class Notifier(Protocol):
    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        ...


class NoticeBoard:
    """Default notifier: logs every notice and forwards it to an optional sink."""

    def __init__(self, sink: Optional[Callable[[Notice], None]] = None, *, history: int = 50) -> None:
        self._sink = sink
        self._history = max(1, history)
        self.recent: List[Notice] = []

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        notice = Notice(message, NoticeLevel(level))
        if notice.level is NoticeLevel.ERROR:
            _log.warning("Notice: %s", message)
        else:
            _log.info("Notice (%s): %s", notice.level.value, message)
        self.recent.append(notice)
        del self.recent[: -self._history]
        if self._sink is None:
            return
        try:
            self._sink(notice)
        except Exception:
            _log.exception("Failed to present notice")


__all__ = ["Notice", "NoticeBoard", "NoticeLevel", "Notifier"]
