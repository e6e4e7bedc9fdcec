"""
Base exception classes for application-wide error handling.

Every domain error raised by a service is a BaseApplicationError. Each
category carries the HTTP status it maps to, so the API layer can render
any domain failure without knowing the concrete class.

Exception Hierarchy:
    BaseApplicationError (base, 400)
    ├── ValidationError - Input or business rule failures (400)
    ├── PermissionDeniedError - Tenant or authorization failures (403)
    ├── NotFoundError - Unknown identifiers (404)
    └── ConflictError - Operations rejected by current record state (409)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    raise NotFoundError(
        f"Transaction {transaction_id} not found",
        details={"transaction_id": str(transaction_id)},
    )

    # Rendering (done for every view by api_exception_handler)
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, field errors)

    Subclasses override ``default_error_code`` and, for new categories,
    ``http_status``.
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (when present) details keys

        Example:
            {
                "error": "Payment exceeds outstanding balance",
                "error_code": "OVERPAYMENT_REJECTED",
                "details": {"outstanding_cents": 6000}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input fails a business rule.

    Use for:
    - Non-positive amounts
    - Unsupported currencies
    - Inconsistent date ranges

    Example:
        raise ValidationError(
            "Amount must be positive",
            error_code="INVALID_AMOUNT",
            details={"amount_cents": 0},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller may not touch the requested record.

    Example:
        if record.store_id != store_id:
            raise PermissionDeniedError("Record belongs to another store")
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = status.HTTP_403_FORBIDDEN


class NotFoundError(BaseApplicationError):
    """Raised when a requested record does not exist."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = status.HTTP_404_NOT_FOUND


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the record's current state.

    Use for:
    - Operations on terminal records (canceled, settled)
    - Concurrent modification detected under a lock
    - Amounts that would break a balance invariant

    Example:
        raise ConflictError(
            "Transaction is already settled",
            error_code="ALREADY_SETTLED",
        )
    """

    default_error_code: str = "CONFLICT"
    http_status: int = status.HTTP_409_CONFLICT


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    DRF exception handler that renders BaseApplicationError instances.

    Registered as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. Any other
    exception is passed to DRF's default handler unchanged.

    Args:
        exc: The raised exception
        context: DRF handler context (contains the view and request)

    Returns:
        Response for handled exceptions, None to let Django handle the rest
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.warning(
            f"Request rejected: {exc}",
            extra={
                "error_code": exc.error_code,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.to_dict(), status=exc.http_status)

    # Imported here: rest_framework.views loads the authentication classes,
    # which need the app registry, and core is imported while it populates.
    from rest_framework.views import exception_handler

    return exception_handler(exc, context)
