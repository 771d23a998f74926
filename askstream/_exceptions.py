"""Typed error hierarchy for transport, decode, and frame failures."""


class AskStreamError(Exception):
    """Base exception for all askstream errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_id = request_id
        self.method = method
        self.path = path


class TransportError(AskStreamError):
    """Fatal network-level failure: bad status, missing body, dropped connection."""


class AuthenticationError(TransportError):
    """401 — invalid or missing API key."""


class PermissionDeniedError(TransportError):
    """403 — insufficient permissions."""


class NotFoundError(TransportError):
    """404 — endpoint does not exist."""


class ValidationError(TransportError):
    """400/422 — request body rejected."""


class RateLimitError(TransportError):
    """429 — too many requests."""


class APIError(TransportError):
    """500+ or connection failure."""


class StreamDecodeError(AskStreamError):
    """Malformed byte sequence in the response body. Fatal."""


class StreamCancelledError(AskStreamError):
    """The caller abandoned the stream before it completed."""


class FrameParseError(AskStreamError):
    """A single frame's data is not valid JSON. Never surfaces to callers."""


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[TransportError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}
