"""Error kinds raised by the price ledger.

Validation errors are raised before any transaction opens. Store errors are
raised by the storage adapter after the failed transaction has been rolled
back, so callers never observe a half-applied write.
"""


class PricebookError(Exception):
    """Base class for all pricebook errors."""


class LedgerValidationError(PricebookError):
    """Input rejected before touching the store. Client-caused, not retryable."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class StoreError(PricebookError):
    """A write was rejected or aborted by the database."""


class ItemNotFoundError(StoreError):
    """The referenced item does not exist (foreign-key violation on item_id)."""


class ConflictError(StoreError):
    """A constraint rejected the write, e.g. a concurrent second primary price."""


class TransientStoreError(StoreError):
    """The connection failed mid-operation. Retry policy belongs to the caller."""
