from __future__ import annotations


class NavAnalyticsError(Exception):
    pass


class InputDataError(NavAnalyticsError):
    """Raised when an input series violates ordering/uniqueness or cannot be parsed."""


class StorageError(NavAnalyticsError):
    """Raised when the storage collaborator fails to supply snapshots, flows or prices."""
