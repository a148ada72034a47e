"""
Error kinds raised by the service layer.
Field-level validation problems are not exceptions: they are returned as
{field_path: message} maps so callers can re-render the form.
"""


class PortalError(Exception):
    """Base class; `status_code` is the HTTP status the API layer maps it to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(PortalError):
    """Identifier does not resolve to a record owned by the caller."""

    status_code = 404


class Forbidden(PortalError):
    """Operation not permitted in the record's current state."""

    status_code = 403


class TransientStoreError(PortalError):
    """Storage unavailable; the same operation may be retried."""

    status_code = 503


class UploadRejected(PortalError):
    status_code = 400

    def __init__(self, message: str, too_large: bool = False):
        super().__init__(message)
        if too_large:
            self.status_code = 413


class AuthError(PortalError):
    status_code = 401


class InvalidSectionError(ValueError):
    """Section index outside 1..7 (caller bug, never shown to investors)."""
