"""
Exception types raised by the tax store.

Callers can catch ``TaxStoreError`` to handle every store problem in one
place, or one of the subclasses for finer handling:

    try:
        store.insert(record)
    except DuplicateKeyError as e:
        logger.warning(f"Already present: {e.key}")
    except PersistenceError:
        # memory holds the new record, the file may not
        ...
"""


class TaxStoreError(Exception):
    """Base class for all tax store errors."""


class ValidationError(TaxStoreError):
    """Raised when a record is missing, or has an empty region key or name."""


class DuplicateKeyError(TaxStoreError):
    """Raised by a strict insert when the region key is already stored."""

    def __init__(self, key: str, message: str | None = None) -> None:
        if message is None:
            message = f"Tax record for region '{key}' already exists."
        super().__init__(message)
        self.key = key


class NotFoundError(TaxStoreError):
    """Raised when an update targets a region key that is not stored."""

    def __init__(self, key: str, message: str | None = None) -> None:
        if message is None:
            message = f"Tax record for region '{key}' not found."
        super().__init__(message)
        self.key = key


class PersistenceError(TaxStoreError):
    """
    Raised when the backing file cannot be read on load, or cannot be
    written on commit (after the restore from backup was attempted).
    """
