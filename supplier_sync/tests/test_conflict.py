from supplier_sync.conflict import ConflictGuard
from supplier_sync.errors import TransportError
from supplier_sync.notifications import NoticeLevel
from supplier_sync.tests.fakes import DeferredDispatcher, FakePort, RecordingNotifier, make_supplier


def _build():
    port = FakePort((make_supplier("SUP_1", "Alpha Castings", supplier_po="PO-100"),))
    dispatcher = DeferredDispatcher()
    notifier = RecordingNotifier()
    return ConflictGuard(port, dispatcher, notifier), port, dispatcher, notifier


def test_blank_po_clears_without_remote_call() -> None:
    guard, _port, dispatcher, _notifier = _build()
    cleared: list = []

    guard.check("   ", "SUP_2", on_clear=lambda: cleared.append(True))

    assert cleared == [True]
    assert dispatcher.calls == []


def test_po_used_by_another_supplier_is_a_conflict() -> None:
    guard, port, dispatcher, notifier = _build()
    cleared: list = []
    conflicts: list = []

    guard.check(" PO-100 ", "", on_clear=lambda: cleared.append(True), on_conflict=conflicts.append)
    dispatcher.run_all()

    assert port.calls_named("check_uniqueness") == [("PO-100", "")]
    assert cleared == []
    assert conflicts[0].existing.supplier_id == "SUP_1"
    assert notifier.messages(NoticeLevel.ERROR) == ["PO PO-100 is already used by Alpha Castings"]


def test_own_po_is_not_a_conflict() -> None:
    guard, _port, dispatcher, notifier = _build()
    cleared: list = []

    guard.check("PO-100", "SUP_1", on_clear=lambda: cleared.append(True))
    dispatcher.run_all()

    assert cleared == [True]
    assert notifier.notices == []


def test_transport_failure_does_not_block_the_write() -> None:
    guard, port, dispatcher, notifier = _build()
    port.failures["check_uniqueness"] = TransportError("timeout")
    cleared: list = []

    guard.check("PO-100", "", on_clear=lambda: cleared.append(True))
    dispatcher.run_all()

    assert cleared == [True]
    assert notifier.notices == []
