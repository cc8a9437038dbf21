"""Log notifier — writes messages to the structured log instead of sending them.

Used where no SMS provider is configured.
"""

from uuid import uuid4

import structlog

from dispatch.notifier.port import NotifierPort

logger = structlog.get_logger(__name__)


class LogNotifier(NotifierPort):
    def notify(self, recipient: str, message: str) -> dict:
        message_id = f"log-{uuid4().hex[:12]}"
        logger.info(
            "Notification not sent, no provider configured",
            message_id=message_id,
            recipient=recipient,
            body=message,
        )
        return {"message_id": message_id, "status": "sent"}
