"""
Entity store utilities

Key Features:
- UTC clock used for every timestamp the store writes
- Data serialization/deserialization between pydantic entities and DynamoDB items
- UpdateExpression building for in-place (non-versioned) updates
- Query building (filters, key conditions)

DynamoDB type rules applied here:
- datetime -> ISO-8601 string (always UTC)
- Enum -> its value
- float -> Decimal (boto3 rejects floats)
- integral Decimal read back -> int
- nested None -> NULL (top-level None attributes are omitted)
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from boto3.dynamodb.conditions import Attr, Key
from pydantic import BaseModel

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)

# Physical key attributes of the wide table
PARTITION_KEY = "PK"
SORT_KEY = "SK"


# =============================================================================
# Timestamps
# =============================================================================

def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert datetime to UTC; naive datetimes are assumed to already be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# Data Serialization
# =============================================================================

def to_dynamodb_value(obj: Any) -> Any:
    """Recursively convert a Python value into a DynamoDB-compatible value.

    Nested ``None`` is kept and stored as the DynamoDB NULL type; only
    top-level attributes are dropped when unset (see ``model_to_item``).
    """
    if isinstance(obj, dict):
        return {k: to_dynamodb_value(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_dynamodb_value(item) for item in obj]
    elif isinstance(obj, datetime):
        return to_utc(obj).isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, bool):
        return obj
    elif isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def from_dynamodb_value(obj: Any) -> Any:
    """Recursively undo the number wrapping boto3 applies on reads."""
    if isinstance(obj, dict):
        return {k: from_dynamodb_value(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [from_dynamodb_value(item) for item in obj]
    elif isinstance(obj, Decimal):
        if obj == obj.to_integral_value():
            return int(obj)
        return obj
    return obj


def to_json_numbers(obj: Any) -> Any:
    """Turn every Decimal in a free-form structure into an int or float.

    Declared ``Decimal`` fields keep exact values; untyped payloads
    (``Dict[str, Any]``) get back the plain numbers they were written with.
    """
    if isinstance(obj, dict):
        return {k: to_json_numbers(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [to_json_numbers(item) for item in obj]
    elif isinstance(obj, Decimal):
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    return obj


def model_to_item(model: BaseModel, **keys: str) -> Dict[str, Any]:
    """Convert a pydantic model to a DynamoDB item.

    Args:
        model: Entity to serialize (top-level None fields are dropped)
        **keys: Physical key attributes to add, e.g. ``PK=..., SK=...``

    Returns:
        DynamoDB item dictionary
    """
    item = {
        name: to_dynamodb_value(value)
        for name, value in model.model_dump().items()
        if value is not None
    }
    item.update(keys)
    return item


def strip_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    """Remove the physical PK/SK attributes from a raw item."""
    return {k: v for k, v in item.items() if k not in (PARTITION_KEY, SORT_KEY)}


def item_to_model(item: Dict[str, Any], model_class: Type[M]) -> M:
    """Convert a raw DynamoDB item to a pydantic model.

    Raises:
        ValidationError: If the stored record does not fit the model
    """
    try:
        return model_class.model_validate(from_dynamodb_value(strip_keys(item)))
    except Exception as e:
        logger.error(f"Failed to convert item to {model_class.__name__}: {e}")
        raise ValidationError(f"Failed to convert item to {model_class.__name__}: {e}", original_error=e) from e


# =============================================================================
# Expression Building
# =============================================================================

def build_update_expression(updates: Dict[str, Any]) -> tuple[str, Dict[str, str], Dict[str, Any]]:
    """Build an UpdateExpression for an in-place update.

    Attribute names are always aliased so reserved words (``status``, ``state``,
    ``type``, ``size``...) are safe. ``None`` values become ``REMOVE`` clauses,
    mirroring how full writes drop None fields.

    Example:
        >>> build_update_expression({'status': 'EXPIRED'})
        ('SET #attr0 = :val0', {'#attr0': 'status'}, {':val0': 'EXPIRED'})

    Returns:
        Tuple of (UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues)
    """
    if not updates:
        raise ValidationError("Updates dictionary cannot be empty")

    names = {}
    values = {}
    set_parts = []
    remove_parts = []

    for index, (key, value) in enumerate(updates.items()):
        name_key = f"#attr{index}"
        names[name_key] = key
        if value is None:
            remove_parts.append(name_key)
            continue
        value_key = f":val{index}"
        values[value_key] = to_dynamodb_value(value)
        set_parts.append(f"{name_key} = {value_key}")

    clauses = []
    if set_parts:
        clauses.append("SET " + ", ".join(set_parts))
    if remove_parts:
        clauses.append("REMOVE " + ", ".join(remove_parts))

    return " ".join(clauses), names, values


def build_filter_expression(filters: Dict[str, Any]):
    """Build an AND-ed FilterExpression of equality conditions.

    Example:
        >>> build_filter_expression({'entity_type': 'USER', 'SK': 'V0'})
        # Attr('entity_type').eq('USER') & Attr('SK').eq('V0')
    """
    if not filters:
        return None

    conditions = [Attr(name).eq(to_dynamodb_value(value)) for name, value in filters.items()]
    filter_expr = conditions[0]
    for condition in conditions[1:]:
        filter_expr = filter_expr & condition
    return filter_expr


def build_partition_condition(partition_value: str):
    """KeyConditionExpression selecting every version under one partition key."""
    return Key(PARTITION_KEY).eq(partition_value)


__all__ = [
    "PARTITION_KEY",
    "SORT_KEY",
    "utc_now",
    "to_utc",
    "to_dynamodb_value",
    "from_dynamodb_value",
    "to_json_numbers",
    "model_to_item",
    "strip_keys",
    "item_to_model",
    "build_update_expression",
    "build_filter_expression",
    "build_partition_condition",
]
