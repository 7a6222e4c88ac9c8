"""Error taxonomy for the short link service.

Every expected failure raised by the core is a ``ShortLinkError`` subclass.
The transport maps ``status_code`` onto the HTTP response; ``StorageError``
and anything that is not a ``ShortLinkError`` are reported to callers with a
generic message and logged in full server-side.
"""


class ShortLinkError(Exception):
    """Base class for short link service errors."""

    status_code = 400
    error = "Request failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.error)
        self.message = message or self.error


class ValidationError(ShortLinkError):
    """Malformed URL or slug submitted by the caller."""

    status_code = 400
    error = "Validation failed"


class ConflictError(ShortLinkError):
    """Short code or custom slug already taken."""

    status_code = 400
    error = "Short code already taken"


class NotFoundError(ShortLinkError):
    """Unknown id/code, or a link the caller is not allowed to see."""

    status_code = 404
    error = "Short URL not found"


class ExhaustedError(ShortLinkError):
    """Random allocation found no free code within the attempt budget."""

    status_code = 503
    error = "Unable to allocate a short code, please retry"


class StorageError(ShortLinkError):
    """Underlying store failure (connection issues, timeouts, etc.)."""

    status_code = 500
    error = "Internal server error"


class AuthenticationError(ShortLinkError):
    """Missing or invalid access token on a route that requires one."""

    status_code = 401
    error = "Authentication required"
