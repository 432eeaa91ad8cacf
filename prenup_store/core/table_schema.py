"""
CreateTable parameters for the wide entity table.

Primary key is ``PK`` (``<ENTITY_TYPE>#<id>``) + ``SK`` (``V0`` / ``Vn``).
The secondary indexes are provisioned for future index-backed lookups; the
store itself still scans (see ``VersionedEntityStore.scan_all_by_entity_type``).
"""

from typing import Any, Dict

from ..utils import PARTITION_KEY, SORT_KEY

# (index name, hash attribute, range attribute or None)
SECONDARY_INDEXES = (
    ('EntityTypeIndex', 'entity_type', SORT_KEY),
    ('EmailIndex', 'email', None),
    ('CreatedByIndex', 'created_by', SORT_KEY),
    ('PrenupIndex', 'prenup_id', SORT_KEY),
)


def entity_table_definition(table_name: str) -> Dict[str, Any]:
    """Keyword arguments for ``create_table`` (PAY_PER_REQUEST billing)."""
    attribute_names = [PARTITION_KEY, SORT_KEY] + [hash_key for _, hash_key, _ in SECONDARY_INDEXES]

    indexes = []
    for index_name, hash_key, range_key in SECONDARY_INDEXES:
        key_schema = [{'AttributeName': hash_key, 'KeyType': 'HASH'}]
        if range_key:
            key_schema.append({'AttributeName': range_key, 'KeyType': 'RANGE'})
        indexes.append({
            'IndexName': index_name,
            'KeySchema': key_schema,
            'Projection': {'ProjectionType': 'ALL'},
        })

    return {
        'TableName': table_name,
        'KeySchema': [
            {'AttributeName': PARTITION_KEY, 'KeyType': 'HASH'},
            {'AttributeName': SORT_KEY, 'KeyType': 'RANGE'},
        ],
        'AttributeDefinitions': [
            {'AttributeName': name, 'AttributeType': 'S'} for name in attribute_names
        ],
        'BillingMode': 'PAY_PER_REQUEST',
        'GlobalSecondaryIndexes': indexes,
    }
