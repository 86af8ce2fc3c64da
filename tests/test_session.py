"""Tests for session/ — engine registry, live bus and chunk batching."""

import threading

import pytest

from engine.schemas import Sample, StressResult
from session.batcher import ChunkBatcher
from session.live_bus import LiveBus
from session.manager import SessionManager, session_key


def _row(session_id: str = "s-1", device: str = "Polar Sense", **kwargs) -> Sample:
    return Sample(device=device, session_id=session_id, **kwargs)


# ── SessionManager ───────────────────────────────────────────────────────────


class TestSessionManager:
    def test_start_creates_then_resets(self):
        manager = SessionManager(freq_hz=120)
        assert manager.start_session("Polar Sense", "s-1") is True
        manager.submit([_row(hr=70.0)])
        assert manager.info("Polar Sense", "s-1").total_count == 1

        assert manager.start_session("Polar Sense", "s-1") is False
        info = manager.info("Polar Sense", "s-1")
        assert info.total_count == 0
        assert info.last_valid_hr is None

    def test_sessions_are_independent(self):
        manager = SessionManager(freq_hz=120)
        manager.submit([_row("a", hr=70.0)])
        manager.submit([_row("a", hr=70.0)])
        result_b = manager.submit([_row("b", ppg=1.0)])

        # HR carry-forward must not leak from session "a"
        assert result_b.hr_mean is None
        assert manager.info("Polar Sense", "a").total_count == 2
        assert manager.info("Polar Sense", "b").total_count == 1

    def test_unregistered_session_is_started(self):
        manager = SessionManager()
        manager.submit([_row("new", hr=65.0)])
        assert manager.active_sessions == [session_key("Polar Sense", "new")]

    def test_empty_chunk_rejected(self):
        with pytest.raises(ValueError):
            SessionManager().submit([])

    @pytest.mark.parametrize("sampling_hz", [0, -1])
    def test_non_positive_sampling_rate_rejected(self, sampling_hz):
        manager = SessionManager()
        with pytest.raises(ValueError):
            manager.submit([_row(ppg=1.0)], sampling_hz=sampling_hz)
        assert manager.active_sessions == []

    def test_mixed_session_chunk_rejected(self):
        manager = SessionManager()
        with pytest.raises(ValueError):
            manager.submit([_row("a", hr=70.0), _row("b", hr=90.0)])
        assert manager.active_sessions == []

    def test_results_reach_the_sink(self):
        class _ListSink:
            def __init__(self):
                self.items = []

            def publish(self, key, result):
                self.items.append((key, result))

        sink = _ListSink()
        manager = SessionManager(sink=sink)
        result = manager.submit([_row(hr=70.0)])
        assert sink.items == [("Polar Sense|s-1", result)]

    def test_end_session(self):
        manager = SessionManager()
        manager.start_session("Polar Sense", "s-1")
        manager.end_session("Polar Sense", "s-1")
        assert manager.info("Polar Sense", "s-1") is None
        assert manager.active_sessions == []

    def test_end_session_releases_bus_history(self):
        bus = LiveBus()
        manager = SessionManager(sink=bus)
        manager.submit([_row(hr=70.0)])
        seen = []
        bus.subscribe("Polar Sense|s-1", seen.append)

        manager.end_session("Polar Sense", "s-1")
        assert bus.recent("Polar Sense|s-1") == []

        bus.publish("Polar Sense|s-1", StressResult())
        assert len(seen) == 1

    def test_end_session_with_publish_only_sink(self):
        class _ListSink:
            def publish(self, key, result):
                pass

        manager = SessionManager(sink=_ListSink())
        manager.submit([_row(hr=70.0)])
        manager.end_session("Polar Sense", "s-1")
        assert manager.active_sessions == []

    def test_engine_kwargs_are_forwarded(self):
        manager = SessionManager(freq_hz=60, hr_ratio=1.2)
        manager.start_session("Polar Sense", "s-1")
        info = manager.info("Polar Sense", "s-1")
        assert info.baseline_rows == 10
        assert info.hr_ratio == 1.2

    def test_concurrent_submits_are_serialised(self):
        manager = SessionManager(freq_hz=1)
        manager.start_session("Polar Sense", "s-1")

        def worker():
            for _ in range(50):
                manager.submit([_row(hr=70.0, ibi_ms_list=[800.0, 820.0, 800.0])])

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        info = manager.info("Polar Sense", "s-1")
        assert info.total_count == 200
        assert info.baseline_size == 200
        assert info.sliding_size == 200


# ── LiveBus ──────────────────────────────────────────────────────────────────


class TestLiveBus:
    def test_replay_is_bounded_and_drops_oldest(self):
        bus = LiveBus(replay=3)
        for hr in (60.0, 61.0, 62.0, 63.0):
            bus.publish("k", StressResult(hr_mean=hr))
        assert [p.result.hr_mean for p in bus.recent("k")] == [61.0, 62.0, 63.0]

    def test_subscriber_gets_backlog_then_live(self):
        bus = LiveBus()
        bus.publish("k", StressResult(hr_mean=60.0))
        seen = []
        bus.subscribe("k", seen.append)
        bus.publish("k", StressResult(hr_mean=61.0))
        bus.publish("other", StressResult(hr_mean=99.0))
        assert [p.result.hr_mean for p in seen] == [60.0, 61.0]

    def test_unsubscribe(self):
        bus = LiveBus()
        seen = []
        unsubscribe = bus.subscribe("k", seen.append)
        unsubscribe()
        bus.publish("k", StressResult())
        assert seen == []

    def test_last_unsubscribe_forgets_the_session(self):
        bus = LiveBus()
        first = bus.subscribe("k", lambda point: None)
        second = bus.subscribe("k", lambda point: None)
        first()
        assert "k" in bus._subscribers
        second()
        assert "k" not in bus._subscribers

    def test_failing_subscriber_does_not_block_others(self):
        bus = LiveBus()
        seen = []

        def broken(point):
            raise RuntimeError("socket closed")

        bus.subscribe("k", broken)
        bus.subscribe("k", seen.append)
        bus.publish("k", StressResult(status="warning", status_basic="basic_warning"))
        assert len(seen) == 1

    def test_point_serialisation(self):
        bus = LiveBus()
        bus.publish("k", StressResult(hr_mean=72.0, status_sliding="sliding_warning", status="warning"))
        payload = bus.recent("k")[0].to_dict()
        assert payload["idx"] == 1
        assert payload["hr_mean"] == 72.0
        assert payload["status_sliding"] == "sliding_warning"
        assert isinstance(payload["t"], int)

    def test_drop(self):
        bus = LiveBus()
        bus.publish("k", StressResult())
        bus.subscribe("k", lambda point: None)
        bus.drop("k")
        assert bus.recent("k") == []
        assert "k" not in bus._subscribers


# ── ChunkBatcher ─────────────────────────────────────────────────────────────


class TestChunkBatcher:
    def test_flushes_on_count(self):
        batcher = ChunkBatcher(flush_every_s=12.0, max_batch=3, clock=lambda: 0.0)
        assert batcher.add(_row(hr=1.0)) is None
        assert batcher.add(_row(hr=2.0)) is None
        chunk = batcher.add(_row(hr=3.0))
        assert [s.hr for s in chunk] == [1.0, 2.0, 3.0]
        assert len(batcher) == 0

    def test_flushes_on_time(self):
        batcher = ChunkBatcher(flush_every_s=12.0, max_batch=300, clock=lambda: 0.0)
        assert batcher.add(_row(hr=1.0), now=5.0) is None
        chunk = batcher.add(_row(hr=2.0), now=12.0)
        assert len(chunk) == 2
        # Timer restarts from the last flush
        assert batcher.add(_row(hr=3.0), now=20.0) is None
        assert len(batcher.add(_row(hr=4.0), now=24.0)) == 2

    def test_forced_flush(self):
        batcher = ChunkBatcher(clock=lambda: 0.0)
        assert batcher.flush() is None
        batcher.add(_row(hr=1.0))
        assert len(batcher.flush()) == 1
        assert batcher.flush() is None

    def test_rejects_bad_batch_size(self):
        with pytest.raises(ValueError):
            ChunkBatcher(max_batch=0)
