class FetchError(Exception):
    """Base class for errors reported while fetching a single URL."""


class RequestBuildError(FetchError):
    """The request builder could not produce a request for a URL."""


class TransportError(FetchError):
    """DNS, connect, TLS, timeout or protocol failure while sending."""


class ReleaseError(FetchError):
    """Releasing the response body back to the pool failed."""


class ContextError(Exception):
    """Raised from a run that was stopped by its context."""


class Cancelled(ContextError):
    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceeded(ContextError):
    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)
