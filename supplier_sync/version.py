"""Centralized package metadata."""

from __future__ import annotations


PACKAGE_VERSION = "0.3.0"
PACKAGE_NAME = "supplier-sync"


def display_version(value: str) -> str:
    """Return a version string prefixed with ``v`` if missing."""

    value = value.strip()
    return value if value.lower().startswith("v") else f"v{value}"


def user_agent() -> str:
    return f"{PACKAGE_NAME}/{PACKAGE_VERSION}"


__all__ = ["PACKAGE_VERSION", "PACKAGE_NAME", "display_version", "user_agent"]
