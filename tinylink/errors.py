"""Error kinds raised by the link store, allocator and resolver.

Each carries the HTTP status the API answers with, so route handlers
can let them propagate to a single exception handler.
"""


class LinkError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LinkError):
    """Malformed target URL or short code."""
    status_code = 400


class ConflictError(LinkError):
    """Short code already taken."""
    status_code = 409


class NotFound(LinkError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class StoreError(LinkError):
    """Unexpected persistence failure."""
    status_code = 500
