"""Store error hierarchy for persistence backends.

All store implementations must raise these errors for consistent error handling.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    Store implementations wrap backend-specific errors
    in one of the StoreError subclasses.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when store connection fails.

    Examples:
        - Database connection timeout
        - Network errors
    """

    pass


class NotFoundError(StoreError):
    """Raised when requested entity is not found.

    This should be raised when a specific entity lookup fails,
    not for empty search results.
    """

    pass
