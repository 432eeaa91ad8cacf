"""
Thin DynamoDB Table Gateway

Lightweight wrapper around a boto3 ``Table`` resource for the single wide
entity table. It builds the boto3 resource on first use, exposes only the
item operations the versioned store needs, and turns every botocore
``ClientError`` into one of the package's exceptions.

No retries, backoff or idempotency tokens are layered on top of botocore's own
client behaviour; failures surface to the caller with the original
``ClientError`` attached as ``original_error``.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..config import DynamoDBConfig
from ..exceptions import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from ..utils import PARTITION_KEY, SORT_KEY

logger = logging.getLogger(__name__)

CONFLICT = 'conflict'
MISSING_TABLE = 'missing_table'
INVALID = 'invalid'
RETRY = 'retry'
AUTH = 'auth'

# error code -> (category, message label)
ERROR_CATEGORIES = {
    'ConditionalCheckFailedException': (CONFLICT, "Conditional check failed"),
    'TransactionConflictException': (CONFLICT, "Conflict"),
    'ResourceInUseException': (CONFLICT, "Conflict"),
    'ResourceNotFoundException': (MISSING_TABLE, "Table not found"),
    'ValidationException': (INVALID, "Validation failed"),
    'ItemCollectionSizeLimitExceededException': (INVALID, "Validation failed"),
    'ProvisionedThroughputExceededException': (RETRY, "Throttling"),
    'RequestLimitExceeded': (RETRY, "Throttling"),
    'ThrottlingException': (RETRY, "Throttling"),
    'TooManyRequestsException': (RETRY, "Throttling"),
    'InternalServerError': (RETRY, "Service unavailable"),
    'ServiceUnavailable': (RETRY, "Service unavailable"),
    'ServiceUnavailableException': (RETRY, "Service unavailable"),
    'RequestTimeoutException': (RETRY, "Service unavailable"),
    'UnrecognizedClientException': (AUTH, "Authentication/authorization failed"),
    'AccessDeniedException': (AUTH, "Authentication/authorization failed"),
    'ExpiredTokenException': (AUTH, "Authentication/authorization failed"),
    'InvalidSignatureException': (AUTH, "Authentication/authorization failed"),
    'IncompleteSignatureException': (AUTH, "Authentication/authorization failed"),
}


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Translate a DynamoDB ClientError into a package exception.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional key (``PK#SK``) for context

    Returns:
        The exception to raise, carrying ``error`` as ``original_error``
    """
    details = error.response.get('Error', {})
    error_code = details.get('Code', 'Unknown')

    where = f"{operation} on {table_name}"
    if resource_id:
        where = f"{where} (resource: {resource_id})"

    category, label = ERROR_CATEGORIES.get(error_code, (None, "DynamoDB operation failed"))
    message = f"{label} - {where}: {details.get('Message', str(error))}"

    if category == CONFLICT:
        return ConflictError(message, resource_id, original_error=error)
    if category == MISSING_TABLE:
        return NotFoundError(message, 'table', table_name, original_error=error)
    if category == INVALID:
        return ValidationError(message, original_error=error)
    if category == RETRY:
        return RetryableError(message, original_error=error)
    if category is None:
        logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(message, original_error=error)


def _describe_key(key: Dict[str, Any]) -> Optional[str]:
    if PARTITION_KEY not in key:
        return None
    if SORT_KEY in key:
        return f"{key[PARTITION_KEY]}#{key[SORT_KEY]}"
    return key[PARTITION_KEY]


class TableGateway:
    """
    Thin gateway for the entity table.

    One instance is built per process and handed to the store; the underlying
    boto3 resource is safe to share across requests.
    """

    def __init__(self, config: DynamoDBConfig, table_name: Optional[str] = None):
        """
        Args:
            config: DynamoDB configuration
            table_name: Full table name (defaults to ``config.get_table_name()``)
        """
        self.config = config
        self.table_name = table_name or config.get_table_name()
        self._dynamodb = None
        self._table = None

    def _resource_options(self) -> Dict[str, Any]:
        options = {
            'region_name': self.config.region_name,
            'config': Config(
                retries={'max_attempts': self.config.retries},
                max_pool_connections=self.config.max_pool_connections,
                read_timeout=self.config.timeout_seconds,
                connect_timeout=self.config.timeout_seconds
            ),
        }
        if self.config.endpoint_url:
            options['endpoint_url'] = self.config.endpoint_url
        return options

    @property
    def dynamodb(self):
        """boto3 DynamoDB service resource, created on first access."""
        if self._dynamodb is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )
                self._dynamodb = session.resource('dynamodb', **self._resource_options())
            except Exception as e:
                logger.error(f"Failed to create DynamoDB resource: {e}")
                raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._dynamodb

    @property
    def table(self):
        if self._table is None:
            try:
                self._table = self.dynamodb.Table(self.table_name)
            except Exception as e:
                logger.error(f"Failed to access table '{self.table_name}': {e}")
                raise ConnectionError(f"Failed to access table '{self.table_name}': {e}", e) from e
        return self._table

    def _execute(self, operation: str, method: str, resource_id: Optional[str] = None, **request) -> Dict[str, Any]:
        """Run one boto3 Table call, mapping any ClientError."""
        try:
            return getattr(self.table, method)(**request)
        except ClientError as e:
            raise map_dynamodb_error(e, operation, self.table_name, resource_id) from e

    def get_item(self, key: Dict[str, Any], consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        """Fetch a single item, returning None when nothing is stored at the key."""
        response = self._execute("GetItem", 'get_item', _describe_key(key), Key=key, ConsistentRead=consistent_read)
        return response.get('Item')

    def put_item(self, item: Dict[str, Any], condition_expression=None) -> None:
        """Write a full item, replacing whatever is stored at its key."""
        request = {'Item': item}
        if condition_expression is not None:
            request['ConditionExpression'] = condition_expression

        self._execute("PutItem", 'put_item', _describe_key(item), **request)
        logger.debug(f"Put item in {self.table_name}: {_describe_key(item)}")

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        condition_expression=None,
        return_values: str = 'ALL_NEW'
    ) -> Optional[Dict[str, Any]]:
        """
        Update item attributes in place.

        Returns:
            Updated attributes if return_values != 'NONE'
        """
        request = {
            'Key': key,
            'UpdateExpression': update_expression,
            'ReturnValues': return_values,
        }
        if expression_attribute_values:
            request['ExpressionAttributeValues'] = expression_attribute_values
        if expression_attribute_names:
            request['ExpressionAttributeNames'] = expression_attribute_names
        if condition_expression is not None:
            request['ConditionExpression'] = condition_expression

        response = self._execute("UpdateItem", 'update_item', _describe_key(key), **request)
        logger.debug(f"Updated item in {self.table_name}: {_describe_key(key)}")

        if return_values == 'NONE':
            return None
        return response.get('Attributes')

    def delete_item(self, key: Dict[str, Any], condition_expression=None) -> None:
        request = {'Key': key}
        if condition_expression is not None:
            request['ConditionExpression'] = condition_expression

        self._execute("DeleteItem", 'delete_item', _describe_key(key), **request)
        logger.debug(f"Deleted item from {self.table_name}: {_describe_key(key)}")

    def query(self, **kwargs) -> Dict[str, Any]:
        """
        Execute a DynamoDB Query.

        Raw pass-through to boto3 with error mapping; used to enumerate every
        version stored under one partition key.
        """
        return self._execute("Query", 'query', **kwargs)

    def scan(self, **kwargs) -> Dict[str, Any]:
        """
        Execute a DynamoDB Scan.

        Scans read the whole table (O(table size)); the store only uses them to
        stand in for the missing secondary-index lookups.
        """
        if 'Limit' not in kwargs:
            logger.debug(f"Scan on {self.table_name} without Limit")
        return self._execute("Scan", 'scan', **kwargs)


def create_table_gateway(config: DynamoDBConfig) -> TableGateway:
    """Build a gateway for the prefixed, environment-qualified table."""
    return TableGateway(config, config.get_table_name())
