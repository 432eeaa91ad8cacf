"""
Domain exceptions raised by the entity store and the services built on it.

Organized by category:
1. Caller-contract and input validation errors
2. Not-found errors
3. Conflict and access errors
4. Infrastructure errors (mapped from botocore ClientError)
"""

from typing import Any, Dict, Optional

from .base import PrenupStoreError


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(PrenupStoreError):
    """Raised when input data or a store call violates its contract.

    Used for:
    - Pydantic model validation failures
    - Updates that try to rewrite immutable entity fields
    - Malformed version tags
    - Rejected file uploads
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


# =============================================================================
# Not Found Errors
# =============================================================================

class EntityNotFoundError(PrenupStoreError):
    """Raised when an entity is absent at the key an operation requires.

    Reads report absence as ``None``; update and delete raise this instead.
    """

    def __init__(self, entity_type: Any, entity_id: str, version: Optional[str] = None, original_error: Optional[Exception] = None):
        self.entity_type = getattr(entity_type, 'value', entity_type)
        self.entity_id = entity_id
        self.version = version
        message = f"Entity {self.entity_type}#{entity_id} not found"
        context = {
            'entity_type': self.entity_type,
            'entity_id': entity_id,
        }
        if version:
            context['version'] = version
        super().__init__(message, original_error, context)


class NotFoundError(PrenupStoreError):
    """Raised when a DynamoDB resource (table, index) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


# =============================================================================
# Conflict and Access Errors
# =============================================================================

class ConflictError(PrenupStoreError):
    """Raised when a write conflicts with existing data.

    Used for:
    - ConditionalCheckFailedException from DynamoDB
    - Duplicate user e-mail addresses
    - Agreements that already have a partner
    - Invitations that were already processed
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class AccessDeniedError(PrenupStoreError):
    """Raised when a user acts on an agreement they do not belong to."""

    def __init__(self, message: str, user_id: Optional[str] = None, resource_id: Optional[str] = None):
        self.user_id = user_id
        self.resource_id = resource_id
        context = {}
        if user_id:
            context['user_id'] = user_id
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, None, context)


# =============================================================================
# Infrastructure Errors
# =============================================================================

class ConnectionError(PrenupStoreError):
    """Raised when DynamoDB cannot be reached or rejects the credentials."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(PrenupStoreError):
    """Raised for throttling and transient service failures.

    The store itself never retries; the caller decides.
    """

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)
