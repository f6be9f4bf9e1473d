"""Domain exceptions for the item and digest-history store.

Infrastructure failures (connection, SQL errors) are separated from the
base class so callers can catch every store failure with one clause.
"""


class StoreError(Exception):
    """Base exception for all store errors."""


class StoreConnectionError(StoreError):
    """Raised when the database is not connected."""

    def __init__(self, message: str = "Database not connected") -> None:
        """Initialize the connection error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class StoreQueryError(StoreError):
    """Raised when a query or write against the database fails."""

    def __init__(self, operation: str, cause: Exception) -> None:
        """Initialize the error.

        Args:
            operation: Name of the failed operation.
            cause: Underlying database exception.
        """
        self.operation = operation
        super().__init__(f"Store operation '{operation}' failed: {cause}")
