"""Typed error hierarchy for HTTP failures, codec misuse and stream violations."""


class ThreadstreamError(Exception):
    """Base exception for all threadstream errors."""

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


class AuthenticationError(ThreadstreamError):
    """401 — invalid or missing API key."""


class PermissionDeniedError(ThreadstreamError):
    """403 — insufficient permissions."""


class NotFoundError(ThreadstreamError):
    """404 — resource does not exist."""


class ConflictError(ThreadstreamError):
    """409 — resource already exists or conflicts."""


class ValidationError(ThreadstreamError):
    """400/422 — invalid request parameters."""


class RateLimitError(ThreadstreamError):
    """429 — too many requests."""


class APIError(ThreadstreamError):
    """500+ — server-side error, or the request never reached the server."""


class InvalidVariantError(ThreadstreamError, ValueError):
    """A union value was built with a discriminator/payload combination the API rejects."""


class StreamError(ThreadstreamError):
    """Base class for failures while consuming a run event stream."""


class StreamDecodeError(StreamError):
    """A frame of a known event kind could not be decoded. Ends the stream."""

    def __init__(self, message: str, event: str | None = None):
        super().__init__(message)
        self.event = event


class StreamProtocolError(StreamError):
    """A partial update cannot be merged into the in-flight aggregate for its slot."""

    def __init__(
        self,
        message: str,
        kind: str | None = None,
        expected_id: str | None = None,
        received_id: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.expected_id = expected_id
        self.received_id = received_id


class StreamClosedError(StreamError):
    """The transport failed before any run event was observed."""


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[ThreadstreamError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}
