"""Logger hierarchy for the package and exception routing for its worker threads."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

PACKAGE_FOLDER_NAME = Path(__file__).resolve().parent.name
WORKER_THREAD_PREFIX = "supplier-sync"

BASE_LOGGER = logging.getLogger(PACKAGE_FOLDER_NAME)
BASE_LOGGER.addHandler(logging.NullHandler())

_THREAD_HOOK_INSTALLED = False


def get_logger(suffix: str | None = None) -> logging.Logger:
    """Return the package logger or one of its children (``supplier_sync.<suffix>``)."""

    if suffix is None:
        return BASE_LOGGER
    return BASE_LOGGER.getChild(suffix)


def set_log_level(level: int) -> None:
    BASE_LOGGER.setLevel(level)


def coerce_log_level(value: object) -> int | None:
    """Translate an int, digit string or level name into a logging level."""

    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.isdigit():
            return int(candidate)
        level = logging.getLevelName(candidate.upper())
        return level if isinstance(level, int) else None
    return None


def install_exception_logging(logger: logging.Logger | None = None) -> None:
    """Log uncaught exceptions from dispatcher worker threads to the package log.

    Other threads fall through to the previously installed hook untouched.
    """

    global _THREAD_HOOK_INSTALLED
    if _THREAD_HOOK_INSTALLED:
        return

    target_logger = logger or BASE_LOGGER
    prior_hook = threading.excepthook

    def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
        thread_name = args.thread.name if args.thread is not None else ""
        if thread_name.startswith(WORKER_THREAD_PREFIX):
            target_logger.error(
                "Unhandled exception in worker %s",
                thread_name,
                exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            )
            return
        prior_hook(args)

    threading.excepthook = _thread_excepthook
    _THREAD_HOOK_INSTALLED = True


__all__ = [
    "BASE_LOGGER",
    "WORKER_THREAD_PREFIX",
    "coerce_log_level",
    "get_logger",
    "install_exception_logging",
    "set_log_level",
]
