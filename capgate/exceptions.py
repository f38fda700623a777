"""Exception hierarchy for capgate."""


class CapgateError(Exception):
    """Base exception for all capgate errors."""


class StorageError(CapgateError):
    """Raised when state storage operations fail."""


class StoreUnavailableError(StorageError):
    """Raised when the key-value backend cannot be read or written."""


class StateCorruptError(StorageError):
    """Raised when persisted state cannot be deserialized."""


class ConfigError(CapgateError):
    """Raised when configuration is invalid."""
