import logging

from lagrangeqq.eventhandle import EventHandle


def test_dispatch_calls_handlers_in_order():
    handle = EventHandle()
    seen = []
    handle.subscribe(lambda client, event: seen.append(("first", client, event)))
    handle.subscribe(lambda client, event: seen.append(("second", client, event)))
    client = object()
    handle.dispatch(client, "evt")
    assert seen == [("first", client, "evt"), ("second", client, "evt")]


def test_dispatch_without_handlers_does_nothing():
    handle = EventHandle()
    seen = []
    handle.dispatch(None, 1)
    handle.subscribe(lambda c, e: seen.append(e))
    handle.dispatch(None, 2)
    assert seen == [2]


def test_handler_error_is_contained_and_stops_rest(caplog):
    handle = EventHandle()
    seen = []

    def boom(client, event):
        raise RuntimeError("boom")

    handle.subscribe(lambda c, e: seen.append("before"))
    handle.subscribe(boom)
    handle.subscribe(lambda c, e: seen.append("after"))
    with caplog.at_level(logging.ERROR):
        handle.dispatch(None, "x")
    assert seen == ["before"]
    assert "event error" in caplog.text


def test_subscribe_during_dispatch_applies_next_time():
    handle = EventHandle()
    seen = []

    def adder(client, event):
        if event == 1:
            handle.subscribe(lambda c, e: seen.append(("late", e)))

    handle.subscribe(lambda c, e: seen.append(("adder", e)))
    handle.subscribe(adder)
    handle.dispatch(None, 1)
    assert seen == [("adder", 1)]
    handle.dispatch(None, 2)
    assert seen == [("adder", 1), ("adder", 2), ("late", 2)]


def test_handles_are_independent():
    first, second = EventHandle(), EventHandle()
    seen = []
    first.subscribe(lambda c, e: seen.append(("first", e)))
    second.dispatch(None, "ignored")
    first.dispatch(None, "kept")
    assert seen == [("first", "kept")]