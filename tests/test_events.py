"""Tests for EventEmitter."""

from propsmodel import EventEmitter, SETTLED, changed_channel


class TestEventEmitter:
    def test_emit_to_subscribers(self):
        e = EventEmitter()
        log = []
        e.on("a", lambda *args: log.append(args))
        e.emit("a", 1, 2)
        assert log == [(1, 2)]

    def test_subscription_order(self):
        e = EventEmitter()
        log = []
        e.on("a", lambda: log.append("first"))
        e.on("a", lambda: log.append("second"))
        e.emit("a")
        assert log == ["first", "second"]

    def test_channels_are_independent(self):
        e = EventEmitter()
        log = []
        e.on("a", lambda: log.append("a"))
        e.emit("b")
        assert log == []

    def test_unsubscribe(self):
        e = EventEmitter()
        log = []
        dispose = e.on("a", lambda v: log.append(v))
        e.emit("a", 1)
        dispose()
        e.emit("a", 2)
        assert log == [1]

    def test_double_unsubscribe_is_safe(self):
        e = EventEmitter()
        dispose = e.on("a", lambda: None)
        dispose()
        dispose()  # no error
        assert e.listener_count("a") == 0

    def test_subscribe_during_delivery(self):
        """A subscriber added mid-delivery only sees later emits."""
        e = EventEmitter()
        log = []

        def _late(v):
            log.append(("late", v))

        def _first(v):
            log.append(("first", v))
            e.on("a", _late)

        e.on("a", _first)
        e.emit("a", 1)
        assert log == [("first", 1)]

    def test_reentrant_emit(self):
        e = EventEmitter()
        log = []
        e.on("a", lambda: (log.append("a"), e.emit("b")))
        e.on("b", lambda: log.append("b"))
        e.emit("a")
        assert log == ["a", "b"]

    def test_clear(self):
        e = EventEmitter()
        e.on("a", lambda: None)
        e.on("b", lambda: None)
        e.clear("a")
        assert e.listener_count("a") == 0
        assert e.listener_count("b") == 1
        e.clear()
        assert e.listener_count("b") == 0

    def test_dispose_after_clear(self):
        e = EventEmitter()
        dispose = e.on("a", lambda: None)
        e.clear()
        dispose()  # no error


class TestChannels:
    def test_changed_channel_per_name(self):
        assert changed_channel("width") != changed_channel("length")

    def test_settled_is_not_a_changed_channel(self):
        assert SETTLED != changed_channel("settled")
