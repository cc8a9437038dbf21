"""Notifier port — fire-and-forget messages to customers.

The dispatch core never inspects delivery receipts; callers only log
the returned status.
"""

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    """Abstract interface for notifier adapters."""

    @abstractmethod
    def notify(self, recipient: str, message: str) -> dict:
        """Send a message to a customer contact (usually a phone number).

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
