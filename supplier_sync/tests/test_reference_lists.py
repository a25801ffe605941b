from supplier_sync.errors import TransportError
from supplier_sync.reference_lists import ReferenceLists
from supplier_sync.state import ReferenceEntry, ReferenceKind
from supplier_sync.tests.fakes import DeferredDispatcher, FakePort, make_supplier


def _port() -> FakePort:
    port = FakePort()
    port.reference[ReferenceKind.PLANNER] = [ReferenceEntry("Dana Reyes", email="dana@x.test")]
    port.reference[ReferenceKind.SQIE] = [ReferenceEntry("Ola Berg", alias="OB")]
    port.reference[ReferenceKind.BUSINESS_UNIT] = [ReferenceEntry("Drives"), ReferenceEntry("Motors")]
    return port


def test_lists_load_independently_and_failures_stay_empty() -> None:
    port = _port()
    port.failures["fetch_reference_list"] = TransportError("down")
    dispatcher = DeferredDispatcher()
    loaded: list = []
    lists = ReferenceLists(port, dispatcher, on_loaded=loaded.append)

    lists.load([ReferenceKind.PLANNER])
    assert lists.is_loading
    dispatcher.run_all()

    assert not lists.is_loading
    assert lists.entries(ReferenceKind.PLANNER) == []
    assert loaded == [ReferenceKind.PLANNER]

    del port.failures["fetch_reference_list"]
    lists.load()
    assert len(dispatcher.calls) == len(ReferenceKind)
    dispatcher.run_all()
    assert lists.names(ReferenceKind.BUSINESS_UNIT) == ["Drives", "Motors"]
    assert lists.names(ReferenceKind.CATEGORY) == []


def test_responsibles_join_by_name_case_insensitively() -> None:
    dispatcher = DeferredDispatcher()
    lists = ReferenceLists(_port(), dispatcher)
    lists.load()
    dispatcher.run_all()

    supplier = make_supplier("SUP_1", "Alpha", planner="dana reyes", sqie="Ola Berg", sourcing="Nobody")
    joined = lists.responsibles_for(supplier)

    assert joined[ReferenceKind.PLANNER].email == "dana@x.test"
    assert joined[ReferenceKind.SQIE].alias == "OB"
    assert joined[ReferenceKind.SOURCING] is None
    assert joined[ReferenceKind.CONTINUITY] is None


def test_release_discards_late_results() -> None:
    dispatcher = DeferredDispatcher()
    lists = ReferenceLists(_port(), dispatcher)
    lists.load([ReferenceKind.PLANNER])
    lists.release()
    dispatcher.run_all()

    assert lists.entries(ReferenceKind.PLANNER) == []
    assert not lists.is_loading
