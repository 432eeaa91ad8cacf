"""
Core persistence components for the wide entity table.

- TableGateway: Thin wrapper over boto3 DynamoDB operations
- VersionedEntityStore: V0/Vn versioned CRUD on top of the gateway
- Key and version-tag helpers
"""

from .entity_store import VersionedEntityStore, create_entity_store
from .table_gateway import TableGateway, create_table_gateway, map_dynamodb_error
from .table_schema import SECONDARY_INDEXES, entity_table_definition
from .versioning import (
    LATEST_VERSION,
    create_partition_key,
    create_version_key,
    is_latest_version,
    next_version_key,
    parse_partition_key,
    parse_version_number,
    sort_version_keys,
)

__all__ = [
    "TableGateway",
    "create_table_gateway",
    "map_dynamodb_error",
    "SECONDARY_INDEXES",
    "entity_table_definition",
    "VersionedEntityStore",
    "create_entity_store",
    "LATEST_VERSION",
    "create_partition_key",
    "create_version_key",
    "is_latest_version",
    "next_version_key",
    "parse_partition_key",
    "parse_version_number",
    "sort_version_keys",
]
