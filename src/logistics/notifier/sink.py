"""Notifier selection: the process-wide notification sink (singleton)."""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton).

    Uses FakeNotifier by default. Configure via the NOTIFIER_ADAPTER
    environment variable ("fake" or "log").
    """
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from logistics.notifier.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        elif adapter == "log":
            from logistics.notifier.log_adapter import LogNotifier

            _notifier_instance = LogNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
