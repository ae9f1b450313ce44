"""Error classes for the marketplace backend.

Every error raised by the identity and directory layers is field-scoped: it
names the input field it pertains to and carries a message that is safe to
show next to that field. Resolvers turn these into ``FieldError`` values; no
error in this hierarchy is meant to escape a request.
"""

import logging
import uuid
from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MarketplaceError(Exception):
    """
    Base exception for all marketplace errors.

    Carries an error id, the offending input field and a user-displayable
    message. Internal detail stays in ``message``/``details`` and is only
    ever logged.
    """

    default_code: str = "ERROR"
    default_field: str = "error"
    default_user_message: str | None = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        field: str | None = None,
        user_message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field or self.default_field
        self.user_message = user_message or self.default_user_message or message
        self.code = kwargs.get("code") or self.default_code
        self.details = kwargs.get("details") or {}
        self.error_id = str(uuid.uuid4())
        self.__cause__ = kwargs.get("cause")

        self._log_error()

    def _log_error(self) -> None:
        """Log error with structured data."""
        logger = logging.getLogger(f"marketplace.errors.{self.__class__.__name__}")
        log_data = {
            "error_id": self.error_id,
            "code": self.code,
            "field": self.field,
            "error_message": self.message,
            "details": self._sanitize_details(self.details),
        }

        if self.severity == ErrorSeverity.HIGH:
            logger.error("High severity error", extra=log_data)
        elif self.severity == ErrorSeverity.MEDIUM:
            logger.warning("Medium severity error", extra=log_data)
        else:
            logger.debug("Low severity error", extra=log_data)

    def _sanitize_details(self, details: dict) -> dict:
        """Remove secrets from error details before logging."""
        sensitive_keys = {"password", "token", "secret", "key", "cookie"}
        sanitized = {}
        for key, value in details.items():
            if any(sensitive in key.lower() for sensitive in sensitive_keys):
                sanitized[key] = "***REDACTED***"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_details(value)
            else:
                sanitized[key] = value
        return sanitized

    def to_field_error(self) -> tuple[str, str]:
        """Return the ``(field, message)`` pair shown to the caller."""
        return self.field, self.user_message

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.code}: {self.message}"


class ConfigurationError(MarketplaceError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_field = "configuration"
    severity = ErrorSeverity.HIGH


class ValidationError(MarketplaceError):
    """Malformed or missing input, detected before any store access."""

    default_code = "VALIDATION_ERROR"
    severity = ErrorSeverity.LOW


class NotFoundError(MarketplaceError):
    """Lookup by id, username or email yielded nothing."""

    default_code = "NOT_FOUND"
    severity = ErrorSeverity.LOW


class UniquenessViolationError(MarketplaceError):
    """Duplicate username or email on insert or update."""

    default_code = "UNIQUENESS_VIOLATION"
    default_field = "username"
    severity = ErrorSeverity.LOW

    def __init__(self, message: str, column: str = "username", **kwargs: Any) -> None:
        self.column = column
        super().__init__(message, **kwargs)


class AuthenticationError(MarketplaceError):
    """Password did not verify."""

    default_code = "AUTHENTICATION_ERROR"
    default_field = "password"
    severity = ErrorSeverity.LOW


class StoreError(MarketplaceError):
    """Underlying store failure such as lost connectivity."""

    default_code = "STORE_ERROR"
    default_user_message = "something went wrong, please try again"
    severity = ErrorSeverity.HIGH


class SessionError(MarketplaceError):
    """Session destroy or cookie clear failure."""

    default_code = "SESSION_ERROR"
    default_field = "session"
    default_user_message = "session unavailable"
    severity = ErrorSeverity.HIGH


class GeocodingError(MarketplaceError):
    """Geocoding lookup failed; always handled as a soft failure."""

    default_code = "GEOCODING_ERROR"
    default_field = "address"
    severity = ErrorSeverity.MEDIUM


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ErrorSeverity",
    "GeocodingError",
    "MarketplaceError",
    "NotFoundError",
    "SessionError",
    "StoreError",
    "UniquenessViolationError",
    "ValidationError",
]
