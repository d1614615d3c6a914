"""Back-in-stock waitlist notifier."""

__version__ = "1.0.0"
