"""Error types raised by chain detection and materialization."""


class ChainDetectionError(Exception):
    """Base class for chaindetect errors."""


class ValidationError(ChainDetectionError):
    """Input rejected before touching the store (blank name, too few ids)."""


class NotFoundError(ChainDetectionError):
    """An operation targeted a restaurant or chain that does not exist."""


class StorageError(ChainDetectionError):
    """The store failed; any open transaction has already been rolled back."""
