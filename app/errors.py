"""Error taxonomy shared by the store, cache, ban gate and API layer.

Every error carries the HTTP status it maps to and the message that is safe
to show to the client. Persistence failures keep their detail for the logs
only; the client always sees the same opaque message.
"""


class CodeDropError(Exception):
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    @property
    def client_message(self) -> str:
        return self.message


class ValidationError(CodeDropError):
    """Bad input shape or out-of-bounds value."""

    status_code = 400
    public_message = "Invalid request"


class ContentTooLargeError(ValidationError):
    status_code = 413
    public_message = "Content too large"


class NotFoundError(CodeDropError):
    status_code = 404
    public_message = "Paste not found"


class ForbiddenError(CodeDropError):
    status_code = 403
    public_message = "Forbidden"


class PersistenceError(CodeDropError):
    """Durable store failure. Detail is logged, never returned."""

    status_code = 500
    public_message = "Database error"

    @property
    def client_message(self) -> str:
        return self.public_message


class CacheError(CodeDropError):
    """Cache backend failure. Always absorbed by callers."""
