"""Core orchestration for the supplier browsing, editing and import surface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from .cache import EntityCache
from .conflict import ConflictGuard
from .debounce import Debouncer
from .dialogs import pick_export_path, pick_import_file
from .editor import SupplierEditor
from .exporter import PathChooser, SupplierExporter
from .field_sync import FieldSync
from .importer import FilePicker, ImportPipeline
from .integrations.command_client import CommandClient
from .logging_utils import coerce_log_level, get_logger, install_exception_logging, set_log_level
from .notifications import NoticeBoard, NoticeLevel, Notifier
from .permissions import EditPermission
from .preferences import ConfigStore, PreferencesManager, SyncPreferences
from .reference_lists import ReferenceLists
from .remote import RemoteCommandPort
from .scheduling import Dispatcher, Scheduler, ThreadDispatcher, TkScheduler
from .search import SupplierSearch
from .state import ImportResult, Supplier
from .version import PACKAGE_VERSION, display_version


if TYPE_CHECKING:  # pragma: no cover
    import tkinter as tk

_log = get_logger()


class SupplierManager:
    """Coordinates search, autosave, the edit form, import and export.

    Everything here runs on the UI loop. Remote commands go through the
    dispatcher, timers through the scheduler.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        scheduler: Scheduler,
        dispatcher: Dispatcher,
        *,
        notifier: Optional[Notifier] = None,
        permission: Optional[EditPermission] = None,
        preferences: Optional[SyncPreferences] = None,
        on_view_changed: Optional[Callable[[], None]] = None,
        owns_dispatcher: bool = False,
    ) -> None:
        self.preferences = preferences or SyncPreferences()
        self.port = port
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.notifier: Notifier = notifier or NoticeBoard()
        self.permission = permission or EditPermission()
        self._on_view_changed = on_view_changed
        self._owns_dispatcher = owns_dispatcher

        self.cache = EntityCache()
        self.debouncer = Debouncer(scheduler)
        self.guard = ConflictGuard(port, dispatcher, self.notifier)
        self.search = SupplierSearch(
            port,
            self.cache,
            self.debouncer,
            dispatcher,
            self.notifier,
            delay_ms=self.preferences.search_delay_ms,
            on_results=self._refresh_view,
        )
        self.field_sync = FieldSync(
            port,
            self.cache,
            self.debouncer,
            dispatcher,
            self.notifier,
            self.guard,
            self.permission,
            delay_ms=self.preferences.save_delay_ms,
            on_status_changed=lambda _supplier_id: self._refresh_view(),
        )
        self.editor = SupplierEditor(
            port,
            self.cache,
            dispatcher,
            self.notifier,
            self.guard,
            self.permission,
            on_saved=self._handle_supplier_saved,
        )
        self.importer = ImportPipeline(port, dispatcher, self.notifier, on_committed=self._handle_import_committed)
        self.exporter = SupplierExporter(port, dispatcher, self.notifier)
        self.reference_lists = ReferenceLists(port, dispatcher)
        self._unsubscribe_permission = self.permission.subscribe(self._handle_permission_changed)

    @classmethod
    def for_widget(
        cls,
        widget: "tk.Misc",
        *,
        config: Optional[ConfigStore] = None,
        port: Optional[RemoteCommandPort] = None,
        notifier: Optional[Notifier] = None,
        permission: Optional[EditPermission] = None,
    ) -> "SupplierManager":
        """Build a manager bound to a Tk widget's event loop."""

        preferences = PreferencesManager(config).load()
        level = coerce_log_level(preferences.log_level)
        if level is not None:
            set_log_level(level)
        install_exception_logging()
        _log.info("Starting supplier sync %s", display_version(PACKAGE_VERSION))

        scheduler = TkScheduler(widget)
        dispatcher = ThreadDispatcher(scheduler)
        if port is None:
            port = CommandClient(preferences.api_base_url, timeout=preferences.request_timeout)
        return cls(
            port,
            scheduler,
            dispatcher,
            notifier=notifier,
            permission=permission,
            preferences=preferences,
            owns_dispatcher=True,
        )

    def set_view_listener(self, listener: Optional[Callable[[], None]]) -> None:
        self._on_view_changed = listener

    # ------------------------------------------------------------------
    # Search and inline edits
    # ------------------------------------------------------------------
    def on_query_change(self, text: str) -> None:
        self.search.on_query_change(text)

    def on_field_edit(self, supplier_id: str, field_name: str, value: str) -> bool:
        return self.field_sync.on_field_edit(supplier_id, field_name, value)

    def is_busy(self, supplier_id: str) -> bool:
        return self.field_sync.is_busy(supplier_id)

    # ------------------------------------------------------------------
    # Create / edit form
    # ------------------------------------------------------------------
    def open_editor(self) -> None:
        self.reference_lists.load()

    def close_editor(self) -> None:
        self.reference_lists.release()

    def save_supplier(self, form: Supplier, *, is_new: bool) -> bool:
        return self.editor.save(form, is_new=is_new)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------
    def open_import(self) -> None:
        self.importer.reset()

    def select_import_file(self, picker: Optional[FilePicker] = None) -> bool:
        return self.importer.select_file(picker or pick_import_file)

    def confirm_import(self) -> bool:
        return self.importer.commit()

    def close_import(self) -> None:
        self.importer.reset()

    def export_all(self, choose_path: Optional[PathChooser] = None) -> bool:
        return self.exporter.export(choose_path or pick_export_path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Flush unsaved edits and stop timers; an owned dispatcher stops once idle."""

        failed = self.field_sync.failed_ids()
        if failed:
            _log.warning("Closing with %s supplier(s) whose last save failed: %s", len(failed), ", ".join(failed))
            self.notifier.notify(
                f"{len(failed)} supplier(s) have changes that were not saved",
                NoticeLevel.WARNING,
            )
        self.field_sync.flush()
        self.search.cancel()
        self.debouncer.cancel_all()
        self.reference_lists.release()
        self.importer.reset()
        self._unsubscribe_permission()
        if self._owns_dispatcher:
            closer = getattr(self.dispatcher, "close_when_idle", None)
            if callable(closer):
                closer()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _handle_import_committed(self, result: ImportResult) -> None:
        _log.debug("Refreshing search after import (%s applied)", result.total_applied)
        self.search.refresh()

    def _handle_supplier_saved(self, supplier: Supplier, is_new: bool) -> None:
        if is_new:
            self.search.refresh()
        else:
            self._refresh_view()

    def _handle_permission_changed(self, can_edit: bool) -> None:
        if can_edit:
            return
        dirty = [sid for sid in self.cache.ids() if self.field_sync.is_dirty(sid)]
        if dirty:
            _log.info("Edit permission revoked; saving %s pending supplier(s) now", len(dirty))
            self.field_sync.flush()
        self._refresh_view()

    def _refresh_view(self) -> None:
        if self._on_view_changed is None:
            return
        try:
            self._on_view_changed()
        except Exception:
            _log.exception("Failed to refresh supplier view")


__all__ = ["SupplierManager"]
