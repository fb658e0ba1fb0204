"""Broadcast port — abstract interface for real-time fan-out to connected clients."""

from abc import ABC, abstractmethod


class BroadcastPort(ABC):
    """Abstract interface for broadcast adapters."""

    @abstractmethod
    def publish(self, event: dict) -> None:
        """Deliver ``{"type": ..., "payload": ...}`` to every current subscriber.

        Delivery is at most once and there is no replay for late subscribers.
        Raises on transport failure.
        """
        ...
