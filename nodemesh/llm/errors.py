class CompletionError(Exception):
    """Base exception for all completion-backend errors."""


class TransportError(CompletionError):
    """Raised by a backend for any failed call. ``status`` is the HTTP status, or None for network faults."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedRequestError(CompletionError):
    """Raised when the backend rejects the request shape. Never retried."""


class AllBackendsExhausted(CompletionError):
    """Raised when every candidate model failed."""


class CompletionDisabledError(CompletionError):
    """Raised when completions are switched off or no credential is configured."""
