"""In-memory broadcaster that fans events out to in-process observers.

Every delivered event is also kept in ``published``. There is no replay: an
observer subscribed late only sees what is published after it subscribed.
"""

from collections.abc import Callable

from fulfillment.notification.broadcast_port import BroadcastPort


class BroadcastUnavailable(ConnectionError):
    """The broadcast transport refused the event."""


class InMemoryBroadcaster(BroadcastPort):
    def __init__(self):
        self.published: list[dict] = []
        self._observers: list[Callable[[dict], None]] = []
        self.outage: str | None = None

    def take_offline(self, reason: str = "Broadcast channel unavailable") -> None:
        """Make every following ``publish`` raise BroadcastUnavailable."""
        self.outage = reason

    def subscribe(self, observer: Callable[[dict], None]) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: dict) -> None:
        if self.outage:
            raise BroadcastUnavailable(self.outage)

        self.published.append(event)
        for observer in list(self._observers):
            observer(event)

    def events_of_type(self, event_type: str) -> list[dict]:
        return [e for e in self.published if e["type"] == event_type]
