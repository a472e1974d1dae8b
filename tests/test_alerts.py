import threading

from riskdesk.services.alerts import HIDDEN, AlertChannel, AlertKind

def test_show_schedules_hide(timers):
    channel = AlertChannel(hide_after=3.0, timer_factory=timers)
    events = []
    channel.subscribe(events.append)

    channel.success("Operación registrada")

    assert channel.current.visible
    assert channel.current.kind is AlertKind.SUCCESS
    timer, = timers.created
    assert timer.started and timer.interval == 3.0

    timer.fire()
    assert channel.current == HIDDEN
    assert events[-1] == HIDDEN

def test_second_show_cancels_first_timer(timers):
    channel = AlertChannel(timer_factory=timers)
    events = []
    channel.subscribe(events.append)

    channel.success("uno")
    channel.error("dos")

    first, second = timers.created
    assert first.cancelled
    assert channel.current.message == "dos"
    assert channel.current.kind is AlertKind.ERROR
    # the hide is scheduled from the second call
    assert second.started and second.interval == 3.0
    assert not second.cancelled

    second.fire()
    assert [e for e in events if not e.visible] == [HIDDEN]

def test_stale_timer_does_not_hide(timers):
    channel = AlertChannel(timer_factory=timers)
    channel.success("uno")
    channel.success("dos")

    # a timer that fires after being replaced is a no-op
    timers.created[0].function()
    assert channel.current.message == "dos"
    assert channel.current.visible

def test_hide_and_close(timers):
    channel = AlertChannel(timer_factory=timers)
    events = []
    channel.subscribe(events.append)

    channel.hide()
    assert events == []

    channel.success("uno")
    channel.hide()
    assert timers.created[0].cancelled
    assert events[-1] == HIDDEN

    channel.success("dos")
    channel.close()
    assert timers.created[1].cancelled
    assert channel.current.message == "dos"

def test_failing_listener_does_not_break_others(timers):
    channel = AlertChannel(timer_factory=timers)
    seen = []

    def broken(alert):
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(seen.append)
    channel.error("falló")
    assert seen[0].message == "falló"

def test_real_timer_hides_alert():
    channel = AlertChannel(hide_after=0.05)
    hidden = threading.Event()
    channel.subscribe(lambda alert: None if alert.visible else hidden.set())

    channel.success("uno")
    channel.success("dos")

    assert hidden.wait(2.0)
    assert channel.current == HIDDEN
    channel.close()
