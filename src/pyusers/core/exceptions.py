"""
Custom exceptions for PyUsers.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information. The test harness errors
live here as well so callers catch a single base class.
"""

from typing import Any


class PyUsersException(Exception):
    """
    Base exception for all PyUsers errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(PyUsersException):
    """Invalid request parameters or payload."""

    status_code = 400


class UnknownProviderError(BadRequestError):
    """An identity provider code or name outside the known set."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            message=f"Unknown identity provider: {value!r}",
            code="UNKNOWN_PROVIDER",
            details={"value": str(value)[:100]},
        )
        self.value = value


class ProviderNotAllowedError(BadRequestError):
    """Identity provider may not be used in this environment."""

    def __init__(self, provider: str, environment: str) -> None:
        super().__init__(
            message=f"Identity provider '{provider}' is not allowed in {environment}",
            code="PROVIDER_NOT_ALLOWED",
            details={"provider": provider, "environment": environment},
        )


# =============================================================================
# HTTP 404 - Not Found Errors
# =============================================================================


class NotFoundError(PyUsersException):
    """Requested resource not found."""

    status_code = 404

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID '{identifier}' not found"

        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__(resource="User", identifier=user_id)


class RoleNotFoundError(NotFoundError):
    """Role not found."""

    def __init__(self, role_name: str | None = None) -> None:
        super().__init__(resource="Role", identifier=role_name)


# =============================================================================
# HTTP 409 - Conflict Errors
# =============================================================================


class ConflictError(PyUsersException):
    """Resource conflict."""

    status_code = 409

    def __init__(
        self,
        message: str,
        resource: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="CONFLICT",
            details={"resource": resource},
        )


# =============================================================================
# Test Harness Errors
# =============================================================================


class HarnessError(PyUsersException):
    """Base class for test harness lifecycle failures."""


class CompositionError(HarnessError):
    """The service graph could not be built from configuration plus overrides."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="COMPOSITION_FAILURE", details=details)


class ResetError(HarnessError):
    """A backing store could not be restored to its baseline."""

    def __init__(self, message: str, store: str | None = None) -> None:
        super().__init__(message=message, code="RESET_FAILURE", details={"store": store})


class HarnessTaintedError(ResetError):
    """The harness lost its baseline and must be reprovisioned before reuse."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(
            message="Harness is tainted by a failed or interrupted reset; call reprovision()",
        )
        self.code = "HARNESS_TAINTED"
        self.details["reason"] = reason


class ResetInProgressError(HarnessError):
    """A reset was requested while another reset on the same instance is running."""

    def __init__(self) -> None:
        super().__init__(
            message="A database reset is already running on this harness",
            code="RESET_IN_PROGRESS",
        )


class DisposedError(HarnessError):
    """Operation invoked on a harness that was already torn down."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Cannot call {operation}() on a disposed harness",
            code="DISPOSED",
            details={"operation": operation},
        )
