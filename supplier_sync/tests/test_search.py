from supplier_sync.cache import EntityCache
from supplier_sync.debounce import Debouncer
from supplier_sync.errors import TransportError
from supplier_sync.notifications import NoticeLevel
from supplier_sync.search import SupplierSearch
from supplier_sync.tests.fakes import (
    DeferredDispatcher,
    FakePort,
    FakeScheduler,
    RecordingNotifier,
    make_supplier,
)


def _build(port: FakePort):
    scheduler = FakeScheduler()
    dispatcher = DeferredDispatcher()
    notifier = RecordingNotifier()
    cache = EntityCache()
    search = SupplierSearch(port, cache, Debouncer(scheduler), dispatcher, notifier)
    return search, cache, scheduler, dispatcher, notifier


def _port() -> FakePort:
    return FakePort(
        (
            make_supplier("1", "Acme Bolts"),
            make_supplier("2", "Acme Nuts"),
            make_supplier("3", "Acme Washers"),
            make_supplier("4", "Bravo Steel"),
        )
    )


def test_typing_settles_into_one_search() -> None:
    search, cache, scheduler, dispatcher, _notifier = _build(_port())

    for text in ("a", "ac", "acm", "acme"):
        search.on_query_change(text)
        scheduler.advance(100)
    assert dispatcher.pending("search") == []

    scheduler.advance(200)
    calls = dispatcher.pending("search")
    assert [call.args for call in calls] == [("acme",)]
    assert search.is_loading

    dispatcher.run_all()
    assert [supplier.vendor_name for supplier in cache] == ["Acme Bolts", "Acme Nuts", "Acme Washers"]
    assert not search.is_loading


def test_blank_query_clears_without_remote_call() -> None:
    port = _port()
    search, cache, scheduler, dispatcher, _notifier = _build(port)
    search.search("acme")
    dispatcher.run_all()
    assert len(cache) == 3

    search.on_query_change("acm")
    search.on_query_change("   ")
    scheduler.advance(1000)

    assert len(cache) == 0
    assert dispatcher.calls == []
    assert port.calls_named("search") == [("acme",)]


def test_slow_stale_response_never_overwrites_newer_results() -> None:
    search, cache, scheduler, dispatcher, _notifier = _build(_port())

    search.on_query_change("acme")
    scheduler.advance(300)
    search.on_query_change("bravo")
    scheduler.advance(300)
    slow, fast = dispatcher.pending("search")

    dispatcher.resolve(fast)
    assert [s.vendor_name for s in cache] == ["Bravo Steel"]
    assert not search.is_loading

    dispatcher.resolve(slow)
    assert [s.vendor_name for s in cache] == ["Bravo Steel"]


def test_failure_clears_results_and_notifies() -> None:
    port = _port()
    search, cache, _scheduler, dispatcher, notifier = _build(port)
    search.search("acme")
    dispatcher.run_all()

    port.failures["search"] = TransportError("offline")
    search.search("acme")
    dispatcher.run_all()

    assert len(cache) == 0
    assert not search.is_loading
    assert notifier.messages(NoticeLevel.ERROR) == ["Failed to search suppliers"]


def test_refresh_repeats_last_query_immediately() -> None:
    search, _cache, scheduler, dispatcher, _notifier = _build(_port())
    search.on_query_change("bravo")
    scheduler.advance(300)
    dispatcher.run_all()

    search.refresh()

    assert [call.args for call in dispatcher.pending("search")] == [("bravo",)]
