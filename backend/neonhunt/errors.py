"""Domain errors raised by the hunt services.

Each error carries the HTTP status it maps to; the app-level error handler
renders them as ``{"error": message}``.
"""


class HuntError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(HuntError):
    status_code = 400


class NotFoundError(HuntError):
    status_code = 404


class ConflictError(HuntError):
    status_code = 409


class StorageError(HuntError):
    """The photo blob store rejected an upload or removal."""
    status_code = 502
