class TransactionFetchError(Exception):
    """Base for every failure surfaced by a transaction source."""

    kind = "unknown"

    def __init__(self, message: str = "Failed to fetch transaction details") -> None:
        super().__init__(message)
        self.message = message


class TransactionNotFoundError(TransactionFetchError):
    kind = "not_found"

    def __init__(
        self, message: str = "Transaction not found. Please check the signature and try again."
    ) -> None:
        super().__init__(message)


class RateLimitedError(TransactionFetchError):
    kind = "rate_limited"

    def __init__(
        self, message: str = "Too many requests. Please try again in a few moments."
    ) -> None:
        super().__init__(message)


class ForbiddenError(TransactionFetchError):
    kind = "forbidden"

    def __init__(self, message: str = "Access denied. Please check your permissions.") -> None:
        super().__init__(message)


class ServerError(TransactionFetchError):
    kind = "server_error"

    def __init__(self, message: str, details: object = None) -> None:
        super().__init__(message)
        self.details = details


class FetchTimeoutError(TransactionFetchError):
    kind = "timeout"

    def __init__(self, message: str = "Request timed out. Please try again.") -> None:
        super().__init__(message)


class EmptyDataError(TransactionFetchError):
    kind = "empty_data"

    def __init__(self, message: str = "Transaction data is empty. Please try again.") -> None:
        super().__init__(message)


class NetworkError(TransactionFetchError):
    kind = "network"


class FetchCancelledError(TransactionFetchError):
    """Request aborted by its CancelToken with an explicit reason."""

    kind = "cancelled"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Request cancelled: {reason}")
        self.reason = reason
