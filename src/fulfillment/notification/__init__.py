"""Notification adapters — pluggable broadcast and chat channels.

Uses in-memory adapters by default; production wiring swaps them through
``set_broadcaster`` / ``set_chat_channel`` or the BROADCAST_ADAPTER and
CHAT_ADAPTER environment variables.
"""

import os

_broadcaster_instance = None
_chat_instance = None


def get_broadcaster():
    """Return the configured broadcast adapter (singleton)."""
    global _broadcaster_instance
    if _broadcaster_instance is None:
        adapter = os.environ.get("BROADCAST_ADAPTER", "memory")
        if adapter == "memory":
            from fulfillment.notification.memory_broadcaster import InMemoryBroadcaster

            _broadcaster_instance = InMemoryBroadcaster()
        else:
            raise ValueError(f"Unknown broadcast adapter: {adapter}")
    return _broadcaster_instance


def set_broadcaster(broadcaster) -> None:
    global _broadcaster_instance
    _broadcaster_instance = broadcaster


def reset_broadcaster():
    """Reset the broadcaster singleton (useful for testing)."""
    global _broadcaster_instance
    _broadcaster_instance = None


def get_chat_channel():
    """Return the configured chat adapter (singleton)."""
    global _chat_instance
    if _chat_instance is None:
        adapter = os.environ.get("CHAT_ADAPTER", "fake")
        if adapter == "fake":
            from fulfillment.notification.fake_chat import FakeChatAdapter

            _chat_instance = FakeChatAdapter()
        else:
            raise ValueError(f"Unknown chat adapter: {adapter}")
    return _chat_instance


def set_chat_channel(channel) -> None:
    global _chat_instance
    _chat_instance = channel


def reset_chat_channel():
    """Reset the chat singleton (useful for testing)."""
    global _chat_instance
    _chat_instance = None
