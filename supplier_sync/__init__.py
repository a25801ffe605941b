"""Client-side synchronization layer for supplier records."""

from __future__ import annotations

from .version import PACKAGE_VERSION

__version__ = PACKAGE_VERSION

__all__ = ["PACKAGE_VERSION", "__version__"]
