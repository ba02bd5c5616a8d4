"""Unit tests for progress reporting."""

import pytest

from core.services.progress import ProgressEvent, ProgressListener, ProgressReporter, ProgressSink


class RecordingListener(ProgressListener):
    def __init__(self, open_=True, fail=False):
        self.open = open_
        self.fail = fail
        self.events = []

    @property
    def is_open(self):
        return self.open

    async def send(self, event):
        if self.fail:
            raise RuntimeError("socket closed")
        self.events.append(event)


@pytest.fixture
def reporter():
    return ProgressReporter()


class TestProgressEvent:
    def test_link_only_serialized_when_present(self):
        assert ProgressEvent(50, "Uploading").to_dict() == {"percent": 50, "status": "Uploading"}
        assert ProgressEvent(100, "Done", "https://x").to_dict() == {"percent": 100, "status": "Done", "link": "https://x"}


class TestProgressSink:
    async def test_absent_listener_is_noop(self):
        sink = ProgressSink()

        event = await sink.emit(10, "Starting")

        assert event == ProgressEvent(10, "Starting")

    async def test_delivers_in_order(self, reporter):
        listener = RecordingListener()
        reporter.attach("req-1", listener)
        sink = reporter.sink("req-1")

        await sink.emit(5, "Ready")
        await sink.emit(50, "Uploading")
        await sink.emit(100, "Done", link="https://x")

        assert [e["percent"] for e in listener.events] == [5, 50, 100]
        assert listener.events[-1]["link"] == "https://x"

    async def test_drops_decreasing_and_duplicate_events(self, reporter):
        listener = RecordingListener()
        reporter.attach("req-1", listener)
        sink = reporter.sink("req-1")

        await sink.emit(40, "Uploading")
        assert await sink.emit(30, "Uploading") is None
        assert await sink.emit(40, "Uploading") is None
        await sink.emit(40, "Upload complete")

        assert listener.events == [
            {"percent": 40, "status": "Uploading"},
            {"percent": 40, "status": "Upload complete"},
        ]

    async def test_clamps_percent(self):
        sink = ProgressSink()

        assert (await sink.emit(150, "x")).percent == 100

    async def test_closed_listener_gets_nothing(self, reporter):
        listener = RecordingListener(open_=False)
        reporter.attach("req-1", listener)

        await reporter.sink("req-1").emit(10, "Ready")

        assert listener.events == []

    async def test_late_listener_misses_earlier_events(self, reporter):
        sink = reporter.sink("req-1")
        await sink.emit(10, "Ready")

        listener = RecordingListener()
        reporter.attach("req-1", listener)
        await sink.emit(20, "Uploading")

        assert listener.events == [{"percent": 20, "status": "Uploading"}]

    async def test_failing_listener_is_detached(self, reporter):
        listener = RecordingListener(fail=True)
        reporter.attach("req-1", listener)

        await reporter.sink("req-1").emit(10, "Ready")

        assert reporter.get_listener("req-1") is None

    async def test_observer_sees_accepted_events(self):
        seen = []
        sink = ProgressSink(observer=seen.append)

        await sink.emit(10, "a")
        await sink.emit(5, "b")

        assert seen == [ProgressEvent(10, "a")]


class TestProgressReporter:
    def test_detach_ignores_replaced_listener(self, reporter):
        old, new = RecordingListener(), RecordingListener()
        reporter.attach("req-1", old)
        reporter.attach("req-1", new)

        reporter.detach("req-1", old)

        assert reporter.get_listener("req-1") is new

    def test_detach_unknown_is_noop(self, reporter):
        reporter.detach("missing")
