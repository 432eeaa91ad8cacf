"""
Versioned Entity Store

Generic persistence and version tracking for every entity kind in the wide
table, independent of domain semantics. Callers pass an entity kind and a
payload; the store computes the composite keys, maintains the "V0 latest +
Vn archive" invariant and returns pydantic entities.

Versioning discipline:

- ``create`` writes ``V0`` only.
- ``update(..., create_new_version=True)`` reads ``V0``, copies it unchanged
  into the next free archive slot, then overwrites ``V0`` with the merged record.
- ``update(..., create_new_version=False)`` patches ``V0`` in place; no archive.
- ``delete`` removes ``V0`` and every archive one item at a time.

Known limitations:

- The versioned read-archive-write sequence is not atomic and is not guarded by
  a conditional write. Two concurrent versioned updates to the same entity race:
  both may pick the same archive slot (one snapshot is lost) and the later
  ``V0`` write wins.
- If the archive write succeeds and the ``V0`` write fails, the archive remains;
  if a delete fails midway, the remaining versions are left orphaned.
- Lookups by kind are full-table scans filtered on ``entity_type`` and
  ``SK = V0``; cost grows with the table, not with the result.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from boto3.dynamodb.conditions import Attr
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConflictError, EntityNotFoundError, ValidationError
from ..models import BaseEntity, EntityType, model_for
from ..utils import (
    PARTITION_KEY,
    SORT_KEY,
    build_filter_expression,
    build_partition_condition,
    build_update_expression,
    item_to_model,
    model_to_item,
    utc_now,
)
from .table_gateway import TableGateway, create_table_gateway
from .versioning import (
    LATEST_VERSION,
    create_partition_key,
    next_version_key,
    parse_version_number,
    sort_version_keys,
)

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=BaseEntity)


class VersionedEntityStore:
    """
    CRUD contract over the wide entity table with append-only version history.

    The store holds no state besides the injected gateway; build one per process
    and pass it to each service.
    """

    def __init__(self, gateway: TableGateway):
        self.gateway = gateway

    @property
    def table_name(self) -> str:
        return self.gateway.table_name

    # =========================================================================
    # Create / Read
    # =========================================================================

    def create(self, entity: E) -> E:
        """
        Stamp and store a new entity as ``V0``.

        ``created_at``, ``updated_at`` and ``version`` on the input are ignored
        and replaced. Uniqueness (e.g. by e-mail) is the caller's job; an
        existing record with the same id is overwritten.

        Returns:
            The stored entity, including timestamps and ``version="V0"``
        """
        now = utc_now()
        stored = entity.model_copy(update={
            'created_at': now,
            'updated_at': now,
            'version': LATEST_VERSION,
        })

        pk = create_partition_key(stored.entity_type, stored.id)
        try:
            self.gateway.put_item(model_to_item(stored, PK=pk, SK=LATEST_VERSION))
        except Exception as e:
            logger.error(f"Error creating entity {pk}: {e}")
            raise

        logger.info(f"Created entity: {pk}#{LATEST_VERSION}")
        return stored

    def get_by_id(
        self,
        entity_type: EntityType,
        entity_id: str,
        version: str = LATEST_VERSION,
        model_class: Optional[Type[E]] = None
    ) -> Optional[E]:
        """
        Fetch one version of an entity.

        Args:
            entity_type: Entity kind
            entity_id: Entity id
            version: Version tag; ``"V0"`` (default) is the current record
            model_class: Override for the model registered for the kind

        Returns:
            The entity, or None if nothing is stored at that exact key
        """
        pk = create_partition_key(entity_type, entity_id)
        try:
            item = self.gateway.get_item({PARTITION_KEY: pk, SORT_KEY: version})
        except Exception as e:
            logger.error(f"Error getting entity {pk}#{version}: {e}")
            raise

        if item is None:
            return None
        return item_to_model(item, model_class or model_for(entity_type))

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        updates: Dict[str, Any],
        create_new_version: bool = True
    ) -> BaseEntity:
        """
        Apply a partial update to the current version.

        Args:
            entity_type: Entity kind
            entity_id: Entity id
            updates: Field values to overlay on the current record
            create_new_version: Archive the current record before overwriting it

        Returns:
            The new current record

        Raises:
            EntityNotFoundError: No ``V0`` exists (nothing is written)
            ValidationError: ``updates`` is empty, names unknown fields, touches
                immutable fields, or produces an invalid record
        """
        model_class = model_for(entity_type)
        self._check_updates(model_class, updates)

        current = self.get_by_id(entity_type, entity_id)
        if current is None:
            raise EntityNotFoundError(entity_type, entity_id, LATEST_VERSION)

        now = utc_now()
        merged = self._merge(model_class, current, updates, now)
        pk = create_partition_key(entity_type, entity_id)

        if create_new_version:
            return self._update_with_archive(pk, current, merged)
        return self._update_in_place(pk, model_class, merged, updates, now)

    def _update_with_archive(self, pk: str, current: BaseEntity, merged: BaseEntity) -> BaseEntity:
        # Read current -> archive it -> write new current; never the reverse.
        archive_key = next_version_key(self._get_version_keys(pk))
        archived = current.model_copy(update={'version': archive_key})
        try:
            self.gateway.put_item(model_to_item(archived, PK=pk, SK=archive_key))
        except Exception as e:
            logger.error(f"Error archiving {pk}#{archive_key}: {e}")
            raise
        logger.info(f"Archived version: {pk}#{archive_key}")

        try:
            self.gateway.put_item(model_to_item(merged, PK=pk, SK=LATEST_VERSION))
        except Exception as e:
            # The archive just written stays behind
            logger.error(f"Error writing current version {pk}#{LATEST_VERSION}: {e}")
            raise
        logger.info(f"Updated entity with new version: {pk}#{LATEST_VERSION}")
        return merged

    def _update_in_place(
        self,
        pk: str,
        model_class: Type[BaseEntity],
        merged: BaseEntity,
        updates: Dict[str, Any],
        now
    ) -> BaseEntity:
        # Write the validated, normalized values rather than the raw input
        normalized = merged.model_dump()
        changes = {field: normalized[field] for field in updates}
        changes['updated_at'] = now

        update_expression, names, values = build_update_expression(changes)
        try:
            attributes = self.gateway.update_item(
                key={PARTITION_KEY: pk, SORT_KEY: LATEST_VERSION},
                update_expression=update_expression,
                expression_attribute_names=names,
                expression_attribute_values=values,
                condition_expression=Attr(PARTITION_KEY).exists(),
                return_values='ALL_NEW'
            )
        except ConflictError as e:
            # V0 vanished between the read and the write
            entity_type, entity_id = merged.entity_type, merged.id
            raise EntityNotFoundError(entity_type, entity_id, LATEST_VERSION, original_error=e) from e

        logger.info(f"Updated entity in place: {pk}#{LATEST_VERSION}")
        return item_to_model(attributes, model_class)

    @staticmethod
    def _check_updates(model_class: Type[BaseEntity], updates: Dict[str, Any]) -> None:
        if not updates:
            raise ValidationError("Updates dictionary cannot be empty")

        immutable = sorted(set(updates) & BaseEntity.IMMUTABLE_FIELDS)
        if immutable:
            raise ValidationError(
                f"Cannot update immutable fields: {immutable}",
                errors={field: "immutable" for field in immutable}
            )

        unknown = sorted(set(updates) - set(model_class.model_fields))
        if unknown:
            raise ValidationError(
                f"Unknown fields for {model_class.__name__}: {unknown}",
                errors={field: "unknown field" for field in unknown}
            )

    @staticmethod
    def _merge(model_class: Type[E], current: E, updates: Dict[str, Any], now) -> E:
        data = current.model_dump()
        data.update(updates)
        data['updated_at'] = now
        data['version'] = LATEST_VERSION
        try:
            return model_class.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid update for {model_class.__name__}: {e}", original_error=e) from e

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, entity_type: EntityType, entity_id: str) -> int:
        """
        Delete the current record and every archived version.

        Each version is deleted with its own request. A failure stops the loop
        and propagates; versions deleted before it stay deleted.

        Returns:
            Number of versions deleted

        Raises:
            EntityNotFoundError: No version exists under the partition key
        """
        pk = create_partition_key(entity_type, entity_id)
        version_keys = self._get_version_keys(pk)
        if not version_keys:
            raise EntityNotFoundError(entity_type, entity_id)

        for version_key in sort_version_keys(version_keys):
            try:
                self.gateway.delete_item({PARTITION_KEY: pk, SORT_KEY: version_key})
            except Exception as e:
                logger.error(f"Error deleting {pk}#{version_key}: {e}")
                raise

        logger.info(f"Deleted all versions of entity: {pk} ({len(version_keys)} versions)")
        return len(version_keys)

    # =========================================================================
    # Scans and version history
    # =========================================================================

    def query_by_entity_type(
        self,
        entity_type: EntityType,
        limit: Optional[int] = None,
        last_key: Optional[dict] = None,
        filters: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[BaseEntity], Optional[dict]]:
        """
        Return one page of current records of a kind.

        DynamoDB Operation: Scan with FilterExpression on ``entity_type`` and
        ``SK = V0``. ``limit`` bounds the items *examined* per page, so a page may
        hold fewer matches (or none) while ``next_key`` is still set.

        Args:
            entity_type: Entity kind
            limit: Maximum items to examine
            last_key: Pagination token from a previous page
            filters: Extra attribute equality filters

        Returns:
            Tuple of (entities, next_page_token)
        """
        model_class = model_for(entity_type)
        scan_filters = {'entity_type': EntityType(entity_type), SORT_KEY: LATEST_VERSION}
        if filters:
            scan_filters.update(filters)

        scan_kwargs = {'FilterExpression': build_filter_expression(scan_filters)}
        if limit:
            scan_kwargs['Limit'] = limit
        if last_key:
            scan_kwargs['ExclusiveStartKey'] = last_key

        try:
            response = self.gateway.scan(**scan_kwargs)
        except Exception as e:
            logger.error(f"Error querying by entity type {EntityType(entity_type).value}: {e}")
            raise

        items = [item_to_model(item, model_class) for item in response.get('Items', [])]
        return items, response.get('LastEvaluatedKey')

    def scan_all_by_entity_type(
        self,
        entity_type: EntityType,
        filters: Optional[Dict[str, Any]] = None,
        predicate: Optional[Callable[[BaseEntity], bool]] = None
    ) -> List[BaseEntity]:
        """
        Return every current record of a kind, following scan pagination.

        Stands in for secondary-index lookups (user by e-mail, invitation by
        token, disclosures by prenup); cost is O(table size).
        """
        results: List[BaseEntity] = []
        last_key = None
        while True:
            items, last_key = self.query_by_entity_type(entity_type, last_key=last_key, filters=filters)
            results.extend(item for item in items if predicate is None or predicate(item))
            if not last_key:
                break

        logger.debug(f"Scanned {len(results)} {EntityType(entity_type).value} records")
        return results

    def list_versions(self, entity_type: EntityType, entity_id: str) -> List[BaseEntity]:
        """
        Return the current record followed by every archive, ordered ``V0, V1 .. VN``.

        ``V1`` is the snapshot closest to creation; ``VN`` the most recently
        superseded one. Empty if the entity does not exist.
        """
        model_class = model_for(entity_type)
        pk = create_partition_key(entity_type, entity_id)

        items = self._query_partition(pk)
        items.sort(key=lambda item: parse_version_number(item[SORT_KEY]))
        return [item_to_model(item, model_class) for item in items]

    def _get_version_keys(self, pk: str) -> List[str]:
        items = self._query_partition(
            pk,
            ProjectionExpression='#sk',
            ExpressionAttributeNames={'#sk': SORT_KEY}
        )
        return [item[SORT_KEY] for item in items]

    def _query_partition(self, pk: str, **kwargs) -> List[Dict[str, Any]]:
        query_kwargs = {'KeyConditionExpression': build_partition_condition(pk), **kwargs}
        items: List[Dict[str, Any]] = []

        response = self.gateway.query(**query_kwargs)
        items.extend(response.get('Items', []))
        while 'LastEvaluatedKey' in response:
            query_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
            response = self.gateway.query(**query_kwargs)
            items.extend(response.get('Items', []))

        return items


def create_entity_store(config) -> VersionedEntityStore:
    """Build a store (and its gateway) from a ``DynamoDBConfig``."""
    if config.enable_debug_logging:
        logging.getLogger('prenup_store').setLevel(logging.DEBUG)
    return VersionedEntityStore(create_table_gateway(config))
