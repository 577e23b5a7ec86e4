"""
Error taxonomy for the Lambda handlers.

Every error carries the fixed, caller-safe message that ends up in the
response body. Details from providers or stores are logged, never returned.
"""

from typing import Optional

from .response_utils import error_response


class APIError(Exception):
    """Base class for API errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self, headers: Optional[dict] = None) -> dict:
        """Convert to API Gateway response format."""
        return error_response(self.status_code, self.message, headers=headers)


class ValidationError(APIError):
    """Raised when client-supplied input is missing or malformed."""

    def __init__(self, message: str = "Invalid request body"):
        super().__init__(message, status_code=400)


class AuthError(APIError):
    """Raised when a webhook signature is absent or does not match."""

    def __init__(self, message: str = "Unauthorized: Invalid signature"):
        super().__init__(message, status_code=401)


class ProviderError(APIError):
    """Raised when the speech provider call fails."""

    def __init__(self, message: str = "Failed to generate audio"):
        super().__init__(message, status_code=500)


UpstreamProviderError = ProviderError


class StorageError(APIError):
    """Raised when an object-store read or write fails."""

    def __init__(self, message: str = "Failed to upload audio file"):
        super().__init__(message, status_code=500)


class StoreError(APIError):
    """Raised when the profile store lookup or update fails.

    ``phase`` is "lookup" or "update" so the webhook can report which
    half of the read-then-write failed.
    """

    PHASE_MESSAGES = {
        "lookup": "Database error",
        "update": "Database update failed",
    }

    def __init__(self, phase: str = "lookup"):
        self.phase = phase
        super().__init__(self.PHASE_MESSAGES.get(phase, "Database error"), status_code=500)


class ConfigError(APIError):
    """Raised when a required credential or setting is missing."""

    def __init__(self, message: str = "Server configuration error"):
        super().__init__(message, status_code=500)


class InternalError(APIError):
    """Raised for internal server errors."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)


class NotFoundError(APIError):
    """Raised when the caller's profile or device cannot be found."""

    def __init__(self, message: str = "User or device not found"):
        super().__init__(message, status_code=404)


class QuotaExceededError(APIError):
    """Raised when a plan's daily usage limit has been reached."""

    def __init__(self, message: str = "Daily message limit exceeded"):
        super().__init__(message, status_code=429)
