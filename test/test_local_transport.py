"""
In-process transport, change notification and scheduling helpers.
"""

import logging

import pytest

from scene_sync.common.change import ChangeNotifier
from scene_sync.common.scheduling import DeferredCallQueue, InlineExecutor


class TestLocalTransport:
    def test_publish_reaches_subscribers(self, transport):
        received = []
        topic = transport.topic("/chatter", "std_msgs/String", queue_length=5)
        topic.subscribe(received.append)

        assert transport.publish("/chatter", "hello") == 1
        assert received == ["hello"]
        assert topic.queue_length == 5

    def test_publish_without_subscribers(self, transport):
        assert transport.publish("/nobody", 1) == 0

    def test_unsubscribe_is_idempotent(self, transport):
        received = []
        topic = transport.topic("/chatter", "std_msgs/String")
        topic.subscribe(received.append)
        topic.unsubscribe()
        topic.unsubscribe()

        assert not topic.subscribed
        assert transport.publish("/chatter", "late") == 0
        assert received == []

    def test_double_subscribe_rejected(self, transport):
        topic = transport.topic("/chatter", "std_msgs/String")
        topic.subscribe(lambda m: None)
        with pytest.raises(RuntimeError):
            topic.subscribe(lambda m: None)

    def test_unsubscribe_during_delivery(self, transport):
        received = []
        first = transport.topic("/chatter", "std_msgs/String")
        second = transport.topic("/chatter", "std_msgs/String")

        def on_first(msg):
            received.append(("first", msg))
            second.unsubscribe()

        first.subscribe(on_first)
        second.subscribe(lambda msg: received.append(("second", msg)))

        transport.publish("/chatter", 1)
        assert received == [("first", 1)]


class TestChangeNotifier:
    def test_failing_observer_does_not_block_others(self, caplog):
        notifier = ChangeNotifier()
        calls = []

        def broken():
            raise RuntimeError("boom")

        notifier.on_change(broken)
        notifier.on_change(lambda: calls.append(1))

        with caplog.at_level(logging.ERROR):
            notifier._emit_change()

        assert calls == [1]
        assert "boom" in caplog.text

    def test_remover_is_idempotent(self):
        notifier = ChangeNotifier()
        remove = notifier.on_change(lambda: None)
        remove()
        remove()
        assert notifier._change_callbacks == []


class TestScheduling:
    def test_drain_runs_in_fifo_order(self):
        queue = DeferredCallQueue()
        order = []
        queue.post(lambda: order.append(1))
        queue.post(lambda: order.append(2))

        assert len(queue) == 2
        assert queue.drain() == 2
        assert order == [1, 2]
        assert queue.drain() == 0

    def test_drain_survives_failing_call(self, caplog):
        queue = DeferredCallQueue()
        ran = []

        def broken():
            raise ValueError("bad install")

        queue.post(broken)
        queue.post(lambda: ran.append(True))

        assert queue.drain() == 2
        assert ran == [True]
        assert "bad install" in caplog.text

    def test_inline_executor(self):
        executor = InlineExecutor()
        assert executor.submit(lambda x: x * 2, 21).result() == 42

        def fail():
            raise KeyError("x")

        assert isinstance(executor.submit(fail).exception(), KeyError)
