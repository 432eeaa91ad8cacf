# Base exception class
from .base import PrenupStoreError

from .domain_exceptions import (
    AccessDeniedError,
    ConflictError,
    ConnectionError,
    EntityNotFoundError,
    NotFoundError,
    RetryableError,
    ValidationError,
)

__all__ = [
    # Base exception
    "PrenupStoreError",

    # Domain exceptions (alphabetically ordered)
    "AccessDeniedError",
    "ConflictError",
    "ConnectionError",
    "EntityNotFoundError",
    "NotFoundError",
    "RetryableError",
    "ValidationError",
]
