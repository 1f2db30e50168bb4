from __future__ import annotations

from typing import Optional


class VerikeyError(Exception):
    """Base error for the Verikey client."""


class ValidationError(VerikeyError):
    """Raised when caller input is invalid."""


class ApiError(VerikeyError):
    """Raised when the Verikey backend rejects or fails a request."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"[{self.status}] {self.message}"


class ExternalServiceError(ApiError):
    """Raised when the backend is unreachable or keeps failing (network/5xx)."""


class AuthenticationError(ApiError):
    """Raised when credentials are rejected and could not be refreshed."""


class NotFoundError(ApiError):
    """Raised when a requested resource is not found."""
