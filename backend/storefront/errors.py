"""
Error kinds raised by the product store and mapped to HTTP responses by the routes.
"""


class StoreError(Exception):
    """Base class for product store errors."""

    http_status = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(StoreError):
    """A required field is missing from an insert or delete request."""

    http_status = 400


class AuthError(StoreError):
    """Missing or invalid API key on a mutating request."""

    http_status = 401


class NotFoundError(StoreError):
    http_status = 404


class BackendError(StoreError):
    """The backing store is unreachable or returned malformed data."""

    http_status = 500
