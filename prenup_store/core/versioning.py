"""
Key and version-tag helpers for the wide entity table.

Layout::

    PK = "<ENTITY_TYPE>#<id>"      one partition per entity (its version family)
    SK = "V0"                      current record, overwritten on every update
    SK = "V1", "V2", ...           archived snapshots, written once, never modified

Archive slots are allocated by incrementing the highest number already present
under the partition (``V0`` counts as 0), so ``V1`` is the snapshot closest to
creation and the highest ``Vn`` is the most recently superseded state.

Numbering is append-only: once two or more archives exist, ``V1`` is not the
most recently superseded version. Keeping the newest snapshot at ``V1`` would
renumber every older archive on each update, rewriting records that are
immutable once written. Read the most recent prior state as
``list_versions(...)[-1]`` (the highest ``Vn``), not as ``V1``.
"""

from typing import Iterable, List, Optional, Tuple

from ..exceptions import ValidationError
from ..models.base import LATEST_VERSION, EntityType

VERSION_PREFIX = "V"
KEY_SEPARATOR = "#"


def create_partition_key(entity_type: EntityType, entity_id: str) -> str:
    """Build the partition key for an entity's version family."""
    if not entity_id:
        raise ValidationError("Entity id is required to build a partition key")
    return f"{EntityType(entity_type).value}{KEY_SEPARATOR}{entity_id}"


def parse_partition_key(partition_key: str) -> Tuple[EntityType, str]:
    """Split a partition key back into (entity_type, id).

    Only the first separator splits, so ids may themselves contain ``#``.
    """
    kind, sep, entity_id = partition_key.partition(KEY_SEPARATOR)
    if not sep or not entity_id:
        raise ValidationError(f"Malformed partition key: {partition_key!r}")
    try:
        return EntityType(kind), entity_id
    except ValueError as e:
        raise ValidationError(f"Unknown entity type in partition key: {partition_key!r}", original_error=e) from e


def create_version_key(version_number: Optional[int] = None) -> str:
    """Build a sort key. ``None`` (or 0) means the current version."""
    if version_number is None:
        return LATEST_VERSION
    if version_number < 0:
        raise ValidationError(f"Version number must be non-negative, got {version_number}")
    return f"{VERSION_PREFIX}{version_number}"


def parse_version_number(version_key: str) -> int:
    """Return the numeric suffix of a version tag (``"V12"`` -> 12)."""
    if not version_key or not version_key.startswith(VERSION_PREFIX) or not version_key[1:].isdigit():
        raise ValidationError(f"Malformed version tag: {version_key!r}")
    return int(version_key[1:])


def is_latest_version(version_key: str) -> bool:
    return version_key == LATEST_VERSION


def next_version_key(existing_keys: Iterable[str]) -> str:
    """Return the next free archive slot given the sort keys already stored.

    Examples:
        >>> next_version_key(["V0"])
        'V1'
        >>> next_version_key(["V0", "V1", "V2"])
        'V3'
    """
    highest = max((parse_version_number(key) for key in existing_keys), default=0)
    return create_version_key(highest + 1)


def sort_version_keys(version_keys: Iterable[str]) -> List[str]:
    """Order version tags numerically (DynamoDB sorts ``V10`` before ``V2``)."""
    return sorted(version_keys, key=parse_version_number)


__all__ = [
    "LATEST_VERSION",
    "VERSION_PREFIX",
    "create_partition_key",
    "parse_partition_key",
    "create_version_key",
    "parse_version_number",
    "is_latest_version",
    "next_version_key",
    "sort_version_keys",
]
