"""Notifier adapter registry — outbound customer messages (SMS or similar).

Uses FakeNotifier by default. Select another adapter with the
NOTIFIER_ADAPTER environment variable.
"""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton)."""
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from dispatch.notifier.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        elif adapter == "log":
            from dispatch.notifier.log_adapter import LogNotifier

            _notifier_instance = LogNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
