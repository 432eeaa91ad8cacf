"""
Base entity model shared by every record kind in the wide table.

Every stored record carries the same five bookkeeping fields (``id``,
``entity_type``, ``created_at``, ``updated_at``, ``version``) and a kind-specific
payload. Domain models inherit from :class:`BaseEntity`; the store stamps the
timestamps and version tag, callers only provide ``id``, ``entity_type`` and
the payload.

Datetime handling is centralised in :class:`DateTimeMixin`: ISO strings read
back from DynamoDB (``Z`` or ``+00:00`` suffix) are parsed, and naive datetimes
are pinned to UTC so that every timestamp leaving the store is timezone-aware.
"""

import random
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, FrozenSet, Optional, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, field_validator

LATEST_VERSION = "V0"


class EntityType(str, Enum):
    """Closed set of record kinds; the value prefixes the partition key."""
    USER = "USER"
    PRENUP = "PRENUP"
    FINANCIAL_DISCLOSURE = "FINANCIAL_DISCLOSURE"
    DOCUMENT = "DOCUMENT"
    SIGNATURE = "SIGNATURE"
    PARTNER_INVITATION = "PARTNER_INVITATION"


def generate_entity_id() -> str:
    """Generate an opaque entity id of the form ``<epoch-ms>-<random>``."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=11))
    return f"{int(time.time() * 1000)}-{suffix}"


def _is_datetime_annotation(annotation) -> bool:
    if annotation is datetime:
        return True
    if get_origin(annotation) is not None:
        return any(arg is datetime for arg in get_args(annotation))
    return False


class DateTimeMixin(BaseModel):
    """Parses ISO strings and forces timezone-aware UTC on datetime fields."""

    @field_validator('*', mode='before')
    @classmethod
    def validate_datetime_fields(cls, v, info):
        field = cls.model_fields.get(info.field_name) if info.field_name else None
        if field is None or not _is_datetime_annotation(field.annotation):
            return v

        if v is None:
            return v

        if isinstance(v, str):
            try:
                v = datetime.fromisoformat(v.replace('Z', '+00:00'))
            except ValueError as e:
                raise ValueError(f"Invalid datetime format: {v}. Expected ISO format.") from e

        if isinstance(v, datetime):
            if v.tzinfo is None:
                return v.replace(tzinfo=timezone.utc)
            return v.astimezone(timezone.utc)

        raise ValueError(f"Invalid datetime type: {type(v)}. Expected datetime object or ISO string.")


class BaseEntity(DateTimeMixin, BaseModel):
    """Bookkeeping fields common to every entity kind."""

    id: str = Field(default_factory=generate_entity_id, min_length=1, description="Opaque entity identifier")
    entity_type: EntityType = Field(..., description="Record kind")
    created_at: Optional[datetime] = Field(None, description="Creation time, stamped by the store")
    updated_at: Optional[datetime] = Field(None, description="Last modification time, refreshed on every update")
    version: str = Field(default=LATEST_VERSION, description="V0 for the current record, Vn for archives")

    # Fields an update is never allowed to touch
    IMMUTABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({'id', 'entity_type', 'created_at', 'version'})

    model_config = ConfigDict(extra='ignore')

    @property
    def is_latest(self) -> bool:
        return self.version == LATEST_VERSION
