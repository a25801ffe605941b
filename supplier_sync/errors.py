"""Error taxonomy for remote commands and local pre-checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .state import Supplier


class SupplierSyncError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(SupplierSyncError):
    """Input or batch rejected before anything was written; the user can correct and retry."""


class ConflictError(SupplierSyncError):
    """A unique identifier is already used by another supplier."""

    def __init__(self, value: str, existing: "Supplier") -> None:
        self.value = value
        self.existing = existing
        super().__init__(f"PO {value} is already used by {existing.display_name}")


class TransportError(SupplierSyncError):
    """A remote command failed or returned something unusable."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def describe_error(exc: BaseException) -> str:
    text = str(exc).strip()
    return text or exc.__class__.__name__


__all__ = [
    "ConflictError",
    "SupplierSyncError",
    "TransportError",
    "ValidationError",
    "describe_error",
]
