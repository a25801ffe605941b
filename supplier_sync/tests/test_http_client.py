import logging

from supplier_sync import http_client
from supplier_sync.logging_utils import coerce_log_level, get_logger


def test_shared_session_is_reused_and_identifies_itself(monkeypatch) -> None:
    monkeypatch.setattr(http_client, "_SESSION", None)

    first = http_client.get_shared_session()
    second = http_client.get_shared_session()

    assert first is second
    assert "supplier-sync/0.3.0" in first.headers["User-Agent"]
    assert first.headers["Accept"] == "application/json"

    http_client.reset_shared_session()
    assert http_client.get_shared_session() is not first
    http_client.reset_shared_session()


def test_log_levels_and_child_loggers() -> None:
    assert coerce_log_level("debug") == logging.DEBUG
    assert coerce_log_level("20") == 20
    assert coerce_log_level("") is None
    assert coerce_log_level("chatty") is None
    assert get_logger("search").name == "supplier_sync.search"
