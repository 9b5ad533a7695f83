"""Named-channel event emitter.

Delivery is synchronous: emit() does not return until every subscriber of
the channel has run. Subscribers may subscribe, unsubscribe and emit while
a delivery is in progress; each emit() works on a copy of the subscriber
list taken when it starts.

Usage:
    emitter = EventEmitter()
    dispose = emitter.on("width:changed", lambda name, new, old: print(new))
    emitter.emit("width:changed", "width", 20, 10)
    dispose()
"""

from __future__ import annotations

from typing import Callable

Disposer = Callable[[], None]

# Store-wide channel carrying the list of names changed by one outermost call.
SETTLED = "settled"


def changed_channel(name: str) -> str:
    """Channel on which changes to property `name` are published."""
    return f"{name}:changed"


class EventEmitter:
    """Publish/subscribe on named channels."""

    def __init__(self) -> None:
        self._channels: dict[str, list[Callable[..., None]]] = {}

    def emit(self, channel: str, *args) -> None:
        """Call every subscriber of channel with args, in subscription order."""
        for cb in list(self._channels.get(channel, ())):
            cb(*args)

    def on(self, channel: str, callback: Callable[..., None]) -> Disposer:
        """Register a callback. Returns a function that removes it."""
        self._channels.setdefault(channel, []).append(callback)

        def _unsubscribe() -> None:
            try:
                self._channels.get(channel, []).remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def listener_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def clear(self, channel: str | None = None) -> None:
        """Drop the subscribers of one channel, or of all channels."""
        if channel is None:
            self._channels.clear()
        else:
            self._channels.pop(channel, None)
