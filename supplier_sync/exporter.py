"""Export every supplier to a spreadsheet file."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable, Optional

from .errors import describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .remote import RemoteCommandPort
from .scheduling import Dispatcher


_log = get_logger("exporter")

EXPORT_PREFIX = "suppliers_export_"
EXPORT_EXTENSION = ".xlsx"

PathChooser = Callable[[str], Optional[str]]


def default_export_name(today: Optional[date] = None) -> str:
    day = today or date.today()
    return f"{EXPORT_PREFIX}{day.isoformat()}{EXPORT_EXTENSION}"


class SupplierExporter:
    def __init__(self, port: RemoteCommandPort, dispatcher: Dispatcher, notifier: Notifier) -> None:
        self._port = port
        self._dispatcher = dispatcher
        self._notifier = notifier
        self.is_exporting = False

    def export(self, choose_path: PathChooser, *, today: Optional[date] = None) -> bool:
        if self.is_exporting:
            return False
        target = choose_path(default_export_name(today))
        if not target:
            return False
        self.is_exporting = True
        self._dispatcher.submit(
            self._export_to,
            Path(target),
            on_success=self._handle_exported,
            on_error=self._handle_failed,
            label="export",
        )
        return True

    def _export_to(self, target: Path) -> Path:
        payload = self._port.export_all()
        target.write_bytes(payload)
        return target

    def _handle_exported(self, target: Path) -> None:
        self.is_exporting = False
        _log.info("Suppliers exported to %s", target)
        self._notifier.notify(f"Suppliers exported to {target.name}", NoticeLevel.SUCCESS)

    def _handle_failed(self, exc: Exception) -> None:
        self.is_exporting = False
        _log.warning("Supplier export failed: %s", describe_error(exc))
        self._notifier.notify("Failed to export suppliers", NoticeLevel.ERROR)


__all__ = ["EXPORT_PREFIX", "SupplierExporter", "default_export_name"]
