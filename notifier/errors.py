"""Error taxonomy for the notifier."""
from __future__ import annotations


class NotifierError(Exception):
    """Base class for notifier errors."""


class ConfigurationError(NotifierError, ValueError):
    """Missing or invalid configuration/credentials; fatal at startup."""


class TransientStoreError(NotifierError):
    """A single store query or update failed."""


class DispatchError(NotifierError):
    """The push transport call failed as a whole (not per-token failures)."""


class DataShapeError(NotifierError, ValueError):
    """A stored date, time or frequency could not be parsed."""
