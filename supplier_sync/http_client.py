"""Shared HTTP session used by the remote command client."""

from __future__ import annotations

from typing import Optional

import requests

from .version import user_agent

_SESSION: Optional[requests.Session] = None


def _build_user_agent(existing: Optional[str]) -> str:
    agent = user_agent()
    candidate = (existing or "").strip()
    if candidate and agent in candidate:
        return candidate
    if candidate:
        return f"{candidate} {agent}"
    return agent


def get_shared_session() -> requests.Session:
    """Return the shared requests session, creating it on first use."""

    global _SESSION
    if _SESSION is None:
        session = requests.Session()
        session.headers["User-Agent"] = _build_user_agent(session.headers.get("User-Agent"))
        session.headers["Accept"] = "application/json"
        _SESSION = session
    return _SESSION


def reset_shared_session() -> None:
    """Close and forget the shared session (host shutdown)."""

    global _SESSION
    if _SESSION is not None:
        _SESSION.close()
    _SESSION = None


__all__ = ["get_shared_session", "reset_shared_session"]
