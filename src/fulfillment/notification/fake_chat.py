"""In-process chat adapter; keeps posted messages for assertions."""

from uuid import uuid4

from fulfillment.notification.chat_port import ChatPort


class FakeChatAdapter(ChatPort):
    def __init__(self):
        self.sent_messages: list[dict] = []
        self.outage: str | None = None

    def take_offline(self, reason: str = "Chat webhook unreachable") -> None:
        """Make every following ``send`` report a failed delivery."""
        self.outage = reason

    def send(self, channel: str, message: str) -> dict:
        if self.outage:
            return {"message_id": None, "status": "failed", "error": self.outage}

        message_id = f"msg-{uuid4().hex[:10]}"
        self.sent_messages.append({"message_id": message_id, "channel": channel, "message": message})
        return {"message_id": message_id, "status": "sent"}

    def messages_in(self, channel: str) -> list[str]:
        return [m["message"] for m in self.sent_messages if m["channel"] == channel]
