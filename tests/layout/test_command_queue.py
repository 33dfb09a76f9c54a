"""Tests for ActorQueue / CommandQueue"""

from multistream.layout.queue import ActorQueue, CommandQueue, LayoutCommand
from multistream.telemetry import metrics


def _preview(stream_id: str, x: float = 0.0) -> LayoutCommand:
    return LayoutCommand("preview_move", {"stream_id": stream_id, "translation": x})


class TestLayoutCommand:
    """LayoutCommand"""

    def test_stream_id_from_kwargs(self):
        assert LayoutCommand("add_stream", {"stream_id": "a"}).stream_id == "a"
        assert LayoutCommand("move_pip", {"key": "pip-1"}).stream_id == "pip-1"

    def test_priority_flags(self):
        assert _preview("a").is_low_priority
        assert LayoutCommand("remove_stream", {"stream_id": "a"}).is_protected
        assert LayoutCommand("gesture", protected=True).is_protected
        assert not LayoutCommand("add_stream").is_low_priority

    def test_seq_increases(self):
        first = LayoutCommand("add_stream")
        second = LayoutCommand("add_stream")
        assert second.seq > first.seq

    def test_str(self):
        command = LayoutCommand("add_stream", {"stream_id": "a"})
        assert str(command) == f"add_stream:a#{command.seq}"


class TestActorQueue:
    """ActorQueue"""

    def test_fifo(self):
        queue = ActorQueue[int]("test", max_size=3)
        for i in range(3):
            queue.enqueue(i)
        assert queue.peek() == 0
        assert [queue.dequeue() for _ in range(3)] == [0, 1, 2]
        assert queue.dequeue() is None
        assert queue.is_empty

    def test_drops_oldest_when_full(self):
        queue = ActorQueue[int]("test", max_size=2)
        for i in range(3):
            queue.enqueue(i)
        assert len(queue) == 2
        assert queue.dequeue() == 1
        assert metrics.get_counter("queue.dropped", {"queue": "test"}) == 1

    def test_depth_gauge(self):
        queue = ActorQueue[int]("test")
        queue.enqueue(1)
        queue.enqueue(2)
        assert metrics.get_gauge("queue.depth", {"queue": "test"}) == 2
        assert queue.clear() == 2
        assert metrics.get_gauge("queue.depth", {"queue": "test"}) == 0


class TestCommandQueue:
    """Priority policy and preview merging"""

    def test_low_priority_dropped_above_watermark(self):
        queue = CommandQueue(max_size=10)
        for i in range(8):
            assert queue.enqueue(LayoutCommand("add_stream", {"stream_id": str(i)}))

        assert queue.enqueue(_preview("a")) is False
        assert queue.low_priority_drops == 1
        assert metrics.get_counter("queue.low_priority_dropped", {"queue": "layout"}) == 1
        # Normal commands still fit
        assert queue.enqueue(LayoutCommand("add_stream", {"stream_id": "x"}))

    def test_overflow_drops_oldest_unprotected(self):
        queue = CommandQueue(max_size=3)
        queue.enqueue(LayoutCommand("remove_stream", {"stream_id": "p"}))
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "a"}))
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "b"}))

        assert queue.enqueue(LayoutCommand("add_stream", {"stream_id": "c"}))
        assert [c.stream_id for c in queue._queue] == ["p", "b", "c"]
        assert queue.overflow_drops == 1

    def test_overflow_prefers_low_priority(self):
        queue = CommandQueue(max_size=5)
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "a"}))
        queue.enqueue(_preview("a"))
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "b"}))
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "c"}))
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "d"}))

        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "e"}))
        assert [c.op for c in queue._queue].count("preview_move") == 0
        assert len(queue) == 5

    def test_all_protected_rejects_new(self):
        queue = CommandQueue(max_size=2)
        queue.enqueue(LayoutCommand("remove_stream", {"stream_id": "a"}))
        queue.enqueue(LayoutCommand("remove_stream", {"stream_id": "b"}))

        assert queue.enqueue(LayoutCommand("add_stream", {"stream_id": "c"})) is False
        assert [c.stream_id for c in queue._queue] == ["a", "b"]
        assert metrics.get_counter("queue.overflow_rejected", {"queue": "layout"}) == 1

    def test_merge_keeps_latest_preview_per_stream(self):
        queue = CommandQueue()
        queue.enqueue(_preview("a", 1))
        queue.enqueue(_preview("b", 1))
        queue.enqueue(_preview("a", 2))
        queue.enqueue(LayoutCommand("commit_drag", {"stream_id": "a"}))
        queue.enqueue(_preview("a", 3))

        assert queue.merge_previews() == 1
        assert [(c.op, c.stream_id, c.kwargs.get("translation")) for c in queue._queue] == [
            ("preview_move", "b", 1),
            ("preview_move", "a", 2),
            ("commit_drag", "a", None),
            ("preview_move", "a", 3),
        ]
        assert metrics.get_counter("queue.preview_merged", {"queue": "layout"}) == 1

    def test_merge_uses_tag(self):
        queue = CommandQueue()
        queue.enqueue(LayoutCommand("gesture", {"n": 1}, stream_id="a", low_priority=True, tag="pan"))
        queue.enqueue(LayoutCommand("gesture", {"n": 2}, stream_id="a", low_priority=True, tag="pinch"))
        queue.enqueue(LayoutCommand("gesture", {"n": 3}, stream_id="a", low_priority=True, tag="pan"))

        queue.merge_previews()
        assert [c.kwargs["n"] for c in queue._queue] == [2, 3]

    def test_debug_snapshot(self):
        queue = CommandQueue()
        queue.enqueue(LayoutCommand("add_stream", {"stream_id": "a"}))
        snapshot = queue.debug_snapshot()
        assert snapshot["depth"] == 1
        assert snapshot["pending"][0].startswith("add_stream:a#")
