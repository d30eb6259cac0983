"""Storage backend failures."""

from .base import JournalError


class StorageError(JournalError):
    """Raised when a store backend cannot read or write."""

    def __init__(self, operation: str, store: str, reason: str):
        super().__init__(
            f"Storage {operation} failed for {store}",
            details={"operation": operation, "store": store, "reason": reason},
        )
        self.operation = operation
        self.store = store
        self.reason = reason
