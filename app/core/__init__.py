"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by domain apps. No business logic lives
here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDModel: BaseModel with a UUID primary key

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError: Input or business rule failures (400)
    - PermissionDeniedError: Tenant or authorization failures (403)
    - NotFoundError: Unknown identifiers (404)
    - ConflictError: State conflicts (409)
    - api_exception_handler: DRF handler rendering the above

Views (import from core.views):
    - health_check: Database and cache liveness check

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from core.models.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

__all__ = [
    "BaseApplicationError",
    "ConflictError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
]
