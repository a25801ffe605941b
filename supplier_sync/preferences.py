"""Preference loading and persistence through the host's config object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .logging_utils import get_logger


_log = get_logger("preferences")

DEFAULT_API_BASE_URL = "http://127.0.0.1:8765"


class ConfigStore(Protocol):
    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        ...

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        ...

    def set(self, key: str, value: object) -> None:
        ...


@dataclass
class SyncPreferences:
    save_delay_ms: int = 1000
    search_delay_ms: int = 300
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: int = 15
    log_level: str = "INFO"


def clamp_save_delay(value: object) -> int:
    try:
        delay = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        delay = 1000
    return max(100, min(10_000, delay))


def clamp_search_delay(value: object) -> int:
    try:
        delay = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        delay = 300
    return max(50, min(5_000, delay))


def clamp_timeout(value: object) -> int:
    try:
        seconds = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        seconds = 15
    return max(1, min(120, seconds))


def normalise_base_url(value: object) -> str:
    text = str(value or "").strip().rstrip("/")
    if not text.startswith(("http://", "https://")):
        return DEFAULT_API_BASE_URL
    return text


class PreferencesManager:
    """Loads and persists preferences via an injected config store."""

    def __init__(self, config: Optional[ConfigStore] = None) -> None:
        self._config = config

    def load(self) -> SyncPreferences:
        prefs = SyncPreferences()
        if self._config is None:
            return prefs

        prefs.save_delay_ms = clamp_save_delay(self._get_int("supplier_sync_save_delay_ms", prefs.save_delay_ms))
        prefs.search_delay_ms = clamp_search_delay(
            self._get_int("supplier_sync_search_delay_ms", prefs.search_delay_ms)
        )
        prefs.api_base_url = normalise_base_url(self._get_str("supplier_sync_api_base_url", prefs.api_base_url))
        prefs.request_timeout = clamp_timeout(self._get_int("supplier_sync_request_timeout", prefs.request_timeout))
        prefs.log_level = self._get_str("supplier_sync_log_level", prefs.log_level).strip().upper() or "INFO"
        return prefs

    def save(self, prefs: SyncPreferences) -> None:
        if self._config is None:
            return

        try:
            self._config.set("supplier_sync_save_delay_ms", clamp_save_delay(prefs.save_delay_ms))
        except Exception:
            _log.exception("Failed to persist save delay preference")

        try:
            self._config.set("supplier_sync_search_delay_ms", clamp_search_delay(prefs.search_delay_ms))
        except Exception:
            _log.exception("Failed to persist search delay preference")

        try:
            self._config.set("supplier_sync_api_base_url", normalise_base_url(prefs.api_base_url))
        except Exception:
            _log.exception("Failed to persist API base URL")

        try:
            self._config.set("supplier_sync_request_timeout", clamp_timeout(prefs.request_timeout))
        except Exception:
            _log.exception("Failed to persist request timeout")

        try:
            self._config.set("supplier_sync_log_level", prefs.log_level)
        except Exception:
            _log.exception("Failed to persist log level")

    # ------------------------------------------------------------------
    # Config helpers
    # ------------------------------------------------------------------
    def _get_int(self, key: str, default: int) -> int:
        if self._config is None:
            return default
        try:
            value = self._config.get_int(key, default)
        except Exception:
            _log.debug("Config lookup for %s failed; using default", key)
            return default
        return default if value is None else value

    def _get_str(self, key: str, default: str) -> str:
        if self._config is None:
            return default
        try:
            value = self._config.get_str(key, default)
        except Exception:
            _log.debug("Config lookup for %s failed; using default", key)
            return default
        if value is None:
            return default
        return str(value)


__all__ = [
    "ConfigStore",
    "DEFAULT_API_BASE_URL",
    "PreferencesManager",
    "SyncPreferences",
    "clamp_save_delay",
    "clamp_search_delay",
    "clamp_timeout",
]
