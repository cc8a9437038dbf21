"""Fake notifier — records messages in memory for test assertions."""

from uuid import uuid4

from dispatch.notifier.port import NotifierPort


class FakeNotifier(NotifierPort):
    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
        self.raise_on_send = False

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Notification delivery failed",
        raise_on_send: bool = False,
    ):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_send = raise_on_send

    def notify(self, recipient: str, message: str) -> dict:
        if self.raise_on_send:
            raise ConnectionError(self.failure_reason)

        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent_messages.append({"message_id": message_id, "to": recipient, "body": message})
        return {"message_id": message_id, "status": "sent"}

    def messages_to(self, recipient: str) -> list[dict]:
        return [m for m in self.sent_messages if m["to"] == recipient]

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
        self.raise_on_send = False
