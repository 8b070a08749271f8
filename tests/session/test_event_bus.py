from breathwork.session.events import CountdownTick, EventBus, Notify


def test_handlers_receive_events_in_subscription_order():
    bus = EventBus()
    seen = []
    bus.subscribe(lambda event: seen.append(("first", event)))
    bus.subscribe(lambda event: seen.append(("second", event)))

    bus.emit(CountdownTick(seconds_remaining=3))

    assert seen == [("first", CountdownTick(3)), ("second", CountdownTick(3))]


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    bus.emit(Notify("one"))
    unsubscribe()
    unsubscribe()
    bus.emit(Notify("two"))

    assert seen == [Notify("one")]


def test_failing_handler_does_not_block_others():
    """A subscriber raising is logged; later subscribers still get the event."""
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("renderer crashed")

    bus.subscribe(broken)
    bus.subscribe(seen.append)
    bus.emit(Notify("still delivered", "warning"))

    assert seen == [Notify("still delivered", "warning")]


def test_event_names():
    assert CountdownTick.name == "countdown_tick"
    assert Notify("x").name == "notify"
