"""Two-phase spreadsheet import: validate, then commit."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .errors import describe_error
from .logging_utils import get_logger
from .notifications import NoticeLevel, Notifier
from .remote import RemoteCommandPort
from .scheduling import Dispatcher
from .state import ImportBatch, ImportResult


_log = get_logger("importer")

FilePicker = Callable[[], Optional[str]]
PipelineListener = Callable[["ImportState"], None]


class ImportState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    IMPORTING = "importing"
    COMMITTED = "committed"
    FAILED = "failed"


class ImportPipeline:
    """State machine around ``bulk_validate`` and ``bulk_commit``.

    A batch is only committed from ``VALID``. The spreadsheet schema belongs to
    the store; the pipeline passes the bytes through untouched.
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        dispatcher: Dispatcher,
        notifier: Notifier,
        *,
        on_committed: Optional[Callable[[ImportResult], None]] = None,
    ) -> None:
        self._port = port
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._on_committed = on_committed
        self._listeners: List[PipelineListener] = []
        self._generation = 0

        self.state = ImportState.IDLE
        self.batch: Optional[ImportBatch] = None
        self.message = ""
        self.result: Optional[ImportResult] = None

    @property
    def can_commit(self) -> bool:
        return self.state is ImportState.VALID and self.batch is not None

    @property
    def is_busy(self) -> bool:
        return self.state in (ImportState.VALIDATING, ImportState.IMPORTING)

    def add_listener(self, listener: PipelineListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def select_file(self, picker: FilePicker) -> bool:
        """Ask the picker for a file, read it and start validation."""

        if self.is_busy:
            _log.debug("File selection ignored while %s", self.state.value)
            return False
        path = picker()
        if not path:
            return False
        try:
            payload = Path(path).read_bytes()
        except OSError as exc:
            _log.warning("Failed to read import file %s: %s", path, exc)
            self.batch = None
            self.result = None
            self._transition(ImportState.INVALID, f"Failed to read file: {describe_error(exc)}")
            return False
        self.load(ImportBatch(path=str(path), payload=payload))
        return True

    def load(self, batch: ImportBatch) -> None:
        self.batch = batch
        self.result = None
        self._generation += 1
        _log.info("Import file selected: %s (%s bytes)", batch.file_name, len(batch.payload))
        self._transition(ImportState.FILE_SELECTED, "")
        self.validate()

    def validate(self) -> None:
        batch = self.batch
        if batch is None:
            _log.debug("Validate called without a selected file")
            return
        if self.is_busy:
            _log.debug("Validate ignored while %s", self.state.value)
            return
        generation = self._generation
        self.result = None
        self._transition(ImportState.VALIDATING, "")
        self._dispatcher.submit(
            self._port.bulk_validate,
            batch.payload,
            on_success=lambda summary: self._handle_validated(generation, summary),
            on_error=lambda exc: self._handle_invalid(generation, exc),
            label="bulk-validate",
        )

    def commit(self) -> bool:
        batch = self.batch
        if batch is None or not self.can_commit:
            _log.warning("Import commit refused in state %s", self.state.value)
            return False
        generation = self._generation
        self._transition(ImportState.IMPORTING, "")
        self._dispatcher.submit(
            self._port.bulk_commit,
            batch.payload,
            on_success=lambda result: self._handle_committed(generation, result),
            on_error=lambda exc: self._handle_commit_failed(generation, exc),
            label="bulk-commit",
        )
        return True

    def reset(self) -> None:
        """Return to idle; outcomes of calls still running are ignored."""

        self._generation += 1
        self.batch = None
        self.result = None
        self._transition(ImportState.IDLE, "")

    # ------------------------------------------------------------------
    # Outcome handlers
    # ------------------------------------------------------------------
    def _handle_validated(self, generation: int, summary: object) -> None:
        if generation != self._generation:
            return
        text = str(summary or "").strip() or "File is valid."
        _log.info("Import file validated: %s", text)
        self._transition(ImportState.VALID, text)

    def _handle_invalid(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return
        text = describe_error(exc)
        _log.info("Import file rejected: %s", text)
        self._transition(ImportState.INVALID, text)

    def _handle_committed(self, generation: int, result: ImportResult) -> None:
        if generation != self._generation:
            return
        self.result = result
        summary = f"Updated: {result.updated}  Inserted: {result.inserted}  Errors: {result.errors}"
        _log.info("Supplier import finished (%s)", summary)
        self._transition(ImportState.COMMITTED, summary)
        if result.has_errors:
            self._notifier.notify(
                f"Import finished with {result.errors} row error(s); {result.total_applied} row(s) applied",
                NoticeLevel.WARNING,
            )
        else:
            self._notifier.notify(
                f"Import finished: {result.updated} updated, {result.inserted} inserted",
                NoticeLevel.SUCCESS,
            )
        if self._on_committed is not None:
            try:
                self._on_committed(result)
            except Exception:
                _log.exception("Import completion callback failed")

    def _handle_commit_failed(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return
        text = describe_error(exc)
        self.result = None
        _log.warning("Supplier import failed: %s", text)
        self._transition(ImportState.FAILED, text)
        self._notifier.notify(f"Import failed: {text}", NoticeLevel.ERROR)

    def _transition(self, state: ImportState, message: str) -> None:
        self.state = state
        self.message = message
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _log.exception("Import listener failed")


__all__ = ["ImportPipeline", "ImportState"]
