"""Chat port — abstract interface for team chat webhooks."""

from abc import ABC, abstractmethod


class ChatPort(ABC):
    """Abstract interface for chat adapters."""

    @abstractmethod
    def send(self, channel: str, message: str) -> dict:
        """Post a message to a team channel.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
