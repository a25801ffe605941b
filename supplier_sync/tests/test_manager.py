from supplier_sync.manager import SupplierManager
from supplier_sync.notifications import NoticeLevel
from supplier_sync.permissions import EditPermission
from supplier_sync.preferences import SyncPreferences
from supplier_sync.state import ImportBatch, ImportResult, Supplier
from supplier_sync.tests.fakes import (
    DeferredDispatcher,
    FakePort,
    FakeScheduler,
    RecordingNotifier,
    make_supplier,
)


def _build(can_edit: bool = True):
    port = FakePort(
        (
            make_supplier("SUP_1", "Acme Bolts", supplier_po="PO-1"),
            make_supplier("SUP_2", "Acme Nuts", supplier_po="PO-2"),
        )
    )
    scheduler = FakeScheduler()
    dispatcher = DeferredDispatcher()
    notifier = RecordingNotifier()
    views: list = []
    manager = SupplierManager(
        port,
        scheduler,
        dispatcher,
        notifier=notifier,
        permission=EditPermission(can_edit),
        preferences=SyncPreferences(save_delay_ms=1000, search_delay_ms=300),
        on_view_changed=lambda: views.append(len(manager.cache)),
    )
    return manager, port, scheduler, dispatcher, notifier, views


def test_search_then_autosave_round_trip() -> None:
    manager, port, scheduler, dispatcher, _notifier, views = _build()

    manager.on_query_change("acme")
    scheduler.advance(300)
    dispatcher.run_all()
    assert manager.cache.ids() == ["SUP_1", "SUP_2"]
    assert views[-1] == 2

    assert manager.on_field_edit("SUP_2", "planner", "Dana") is True
    assert manager.is_busy("SUP_2")
    scheduler.advance(1000)
    dispatcher.run_all()

    assert port.records["SUP_2"].planner == "Dana"
    assert not manager.is_busy("SUP_2")


def test_import_commit_refreshes_search() -> None:
    manager, port, scheduler, dispatcher, notifier, _views = _build()
    manager.on_query_change("acme")
    scheduler.advance(300)
    dispatcher.run_all()
    port.records["SUP_3"] = make_supplier("SUP_3", "Acme Washers")
    port.commit_result = ImportResult(inserted=1)

    manager.open_import()
    manager.importer.load(ImportBatch("suppliers.xlsx", b"_control\nrow\n"))
    dispatcher.run_all()
    assert manager.confirm_import() is True
    dispatcher.run_all()

    assert manager.cache.ids() == ["SUP_1", "SUP_2", "SUP_3"]
    assert notifier.messages(NoticeLevel.SUCCESS) == ["Import finished: 0 updated, 1 inserted"]


def test_creating_supplier_refreshes_results() -> None:
    manager, _port, scheduler, dispatcher, _notifier, _views = _build()
    manager.on_query_change("acme")
    scheduler.advance(300)
    dispatcher.run_all()

    manager.open_editor()
    manager.save_supplier(Supplier(supplier_id="", vendor_name="Acme Rivets", country="SE"), is_new=True)
    dispatcher.run_all()
    manager.close_editor()

    assert [s.vendor_name for s in manager.cache] == ["Acme Bolts", "Acme Nuts", "Acme Rivets"]


def test_close_flushes_pending_edits_and_stops_timers() -> None:
    manager, port, scheduler, dispatcher, notifier, _views = _build()
    manager.on_query_change("acme")
    scheduler.advance(300)
    dispatcher.run_all()

    manager.on_field_edit("SUP_1", "bu", "Drives")
    manager.on_query_change("acme bolts")
    manager.close()

    assert scheduler.pending == 0
    assert [call.label for call in dispatcher.calls] == ["upsert"]
    dispatcher.run_all()
    assert port.records["SUP_1"].bu == "Drives"
    assert notifier.messages(NoticeLevel.WARNING) == []


def test_revoking_permission_saves_dirty_suppliers_now() -> None:
    manager, port, scheduler, dispatcher, _notifier, _views = _build()
    manager.on_query_change("acme")
    scheduler.advance(300)
    dispatcher.run_all()

    manager.on_field_edit("SUP_1", "country", "FI")
    manager.permission.set(False)
    dispatcher.run_all()

    assert port.records["SUP_1"].country == "FI"
    assert manager.on_field_edit("SUP_1", "country", "SE") is False


class _ClosableDispatcher(DeferredDispatcher):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    def close_when_idle(self) -> None:
        self.closed = True


def test_close_releases_an_owned_dispatcher_only() -> None:
    for owned in (True, False):
        dispatcher = _ClosableDispatcher()
        manager = SupplierManager(FakePort(), FakeScheduler(), dispatcher, owns_dispatcher=owned)
        manager.close()
        assert dispatcher.closed is owned
