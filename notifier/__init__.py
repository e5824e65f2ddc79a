"""EcoBreak notifier: per-minute plan reminders and activity suggestions over FCM."""

__version__ = "0.3.0"
