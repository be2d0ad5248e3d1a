import threading

import pytest

from conftest import RecordingReporter
from photonctl.modules.polling import Poller, PollOutcome, PollPolicy, WaitSession


def test_session_stops_reporter_once(clock):
    created = []

    def factory(stop_event):
        created.append(RecordingReporter(stop_event))
        return created[-1]

    session = WaitSession(factory, clock=clock)
    with session:
        clock.sleep(3)
        assert session.elapsed == 3
        assert not session.stop_event.is_set()
    session.close()

    assert created[0].started
    assert created[0].stop_calls == 1
    assert session.stop_event.is_set()


def test_sessions_do_not_share_stop_signal(clock):
    first = WaitSession(clock=clock)
    second = WaitSession(clock=clock)

    with first:
        pass

    assert first.stop_event.is_set()
    assert not second.stop_event.is_set()


def test_session_without_reporter(clock):
    with WaitSession(clock=clock) as session:
        assert session.reporter is None
    assert session.stop_event.is_set()


def test_poller_uses_explicit_outcomes(clock):
    values = iter(["a", "b", "done"])
    poller = Poller(PollPolicy(delay=0.5, timeout=10), clock=clock, sleep=clock.sleep)

    result = poller.run(
        fetch=lambda: next(values),
        evaluate=lambda v: PollOutcome.SUCCEEDED if v == "done" else PollOutcome.PENDING,
        on_failure=lambda v: RuntimeError(v),
        description="letters",
    )

    assert result == "done"
    assert clock.sleeps == [0.5, 0.5]


def test_poller_raises_built_failure(clock):
    poller = Poller(PollPolicy(delay=1), clock=clock, sleep=clock.sleep)

    with pytest.raises(KeyError):
        poller.run(
            fetch=lambda: "broken",
            evaluate=lambda v: PollOutcome.FAILED,
            on_failure=lambda v: KeyError(v),
            description="thing",
        )


def test_unexpected_fetch_exception_still_closes_session(clock):
    events = []

    def factory(stop_event):
        events.append(stop_event)
        return RecordingReporter(stop_event)

    def fetch():
        raise ZeroDivisionError()

    poller = Poller(PollPolicy(delay=1), reporter_factory=factory, clock=clock, sleep=clock.sleep)
    with pytest.raises(ZeroDivisionError):
        poller.run(fetch, lambda v: PollOutcome.PENDING, RuntimeError, "thing")

    assert isinstance(events[0], threading.Event)
    assert events[0].is_set()
