"""
Data Access Layer (DAL) for DynamoDB operations.

This module provides the DynamoDB handler used by the admin services: consistent
point reads, batch reads, secondary index queries and atomic multi-item writes
through ``TransactWriteItems``. Low level boto3 errors are translated into the
service error model.
"""

import json
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from commerce_admin.dal.entities import GSI1_INDEX_NAME
from commerce_admin.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ExternalServiceError,
)
from commerce_admin.handlers.utils.observability import logger, metrics, tracer

# BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100
MAX_BATCH_GET_ATTEMPTS = 5


class DALError(BaseServiceError):
    """Base exception for Data Access Layer errors."""

    def __init__(
        self,
        message: str,
        operation: str,
        table_name: str,
        error_code: str = "DAL_ERROR",
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            category=ErrorCategory.INFRASTRUCTURE,
            context=context,
            user_message="A database error occurred. Please try again later.",
        )
        self.operation = operation
        self.table_name = table_name


class TransactionCanceledError(DALError):
    """Raised when DynamoDB cancels a write transaction.

    ``reasons`` holds one cancellation code per staged operation, in order,
    ``"None"`` for operations that did not cause the cancellation.
    """

    def __init__(
        self,
        table_name: str,
        reasons: List[str],
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=f"Transaction cancelled: {reasons}",
            operation="TransactWriteItems",
            table_name=table_name,
            error_code="TRANSACTION_CANCELED",
            severity=ErrorSeverity.MEDIUM,
            context=context,
        )
        self.reasons = reasons


class TransactionConflictError(DALError):
    """Raised when a concurrent transaction touched the same items."""

    def __init__(
        self,
        table_name: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message="Transaction conflicted with a concurrent write",
            operation="TransactWriteItems",
            table_name=table_name,
            error_code="TRANSACTION_CONFLICT",
            severity=ErrorSeverity.MEDIUM,
            context=context,
        )
        self.user_message = "The resource was modified by another request. Please retry."


def to_dynamodb_value(value: Any) -> Any:
    """Convert a JSON-compatible value into types boto3 can serialize (floats become Decimal)."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_dynamodb_value(value: Any) -> Any:
    """Convert boto3 values back into JSON-native Python types."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_dynamodb_value(v) for v in value]
    if isinstance(value, set):
        return sorted(from_dynamodb_value(v) for v in value)
    return value


def _parse_cancellation_reasons(error: ClientError) -> List[str]:
    reasons = error.response.get('CancellationReasons')
    if reasons:
        return [reason.get('Code', 'None') for reason in reasons]

    # Some endpoints only report the reasons inside the message: "... [ConditionalCheckFailed, None]"
    message = error.response.get('Error', {}).get('Message', '')
    if '[' in message and message.endswith(']'):
        return [code.strip() for code in message[message.rindex('[') + 1:-1].split(',')]
    return []


class DynamoDBHandler:
    """DynamoDB handler with error translation and observability."""

    def __init__(
        self,
        table_name: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize DynamoDB handler.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for local testing)
        """
        self.table_name = table_name

        resource_config = {}
        if region_name:
            resource_config['region_name'] = region_name
        if endpoint_url:
            resource_config['endpoint_url'] = endpoint_url

        self.dynamodb = boto3.resource('dynamodb', **resource_config)
        self.table = self.dynamodb.Table(table_name)

        logger.info("DynamoDB handler initialized", extra={
            "table_name": table_name,
            "region_name": region_name,
            "endpoint_url": endpoint_url,
        })

    def _translate_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[ErrorContext] = None,
    ) -> BaseServiceError:
        metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)

        if isinstance(error, BotoCoreError):
            logger.error(f"DynamoDB connection error during {operation}", extra={
                "error": str(error),
                "table_name": self.table_name,
            })
            return ExternalServiceError(
                message=f"Database connection error: {error}",
                service_name="DynamoDB",
                error_code="DATABASE_CONNECTION_ERROR",
                context=context,
            )

        if isinstance(error, TypeError):
            logger.error(f"DynamoDB {operation} serialization error", extra={
                "error": str(error),
                "table_name": self.table_name,
            })
            return DALError(
                message=f"Value cannot be stored: {error}",
                operation=operation,
                table_name=self.table_name,
                error_code="DYNAMODB_SERIALIZATION_ERROR",
                context=context,
            )

        error_code = error.response['Error']['Code']
        error_message = error.response['Error'].get('Message', '')

        logger.error(f"DynamoDB {operation} error", extra={
            "error_code": error_code,
            "error_message": error_message,
            "table_name": self.table_name,
            "operation": operation,
        })

        if error_code == 'TransactionCanceledException':
            reasons = _parse_cancellation_reasons(error)
            if 'TransactionConflict' in reasons:
                return TransactionConflictError(table_name=self.table_name, context=context)
            return TransactionCanceledError(table_name=self.table_name, reasons=reasons, context=context)

        if error_code == 'TransactionConflictException':
            return TransactionConflictError(table_name=self.table_name, context=context)

        if error_code == 'ResourceNotFoundException':
            return DALError(
                message=f"Table {self.table_name} not found",
                operation=operation,
                table_name=self.table_name,
                error_code="TABLE_NOT_FOUND",
                context=context,
            )

        return DALError(
            message=f"DynamoDB error: {error_message}",
            operation=operation,
            table_name=self.table_name,
            error_code=f"DYNAMODB_{error_code}",
            context=context,
        )

    @tracer.capture_method
    def get_item(
        self,
        key: Dict[str, Any],
        consistent_read: bool = True,
        context: Optional[ErrorContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get a single item from DynamoDB.

        Args:
            key: Primary key of the item to retrieve
            consistent_read: Whether to use strongly consistent read
            context: Error context for tracing

        Returns:
            Item data or None if not found

        Raises:
            DALError: If DynamoDB operation fails
        """
        try:
            response = self.table.get_item(Key=key, ConsistentRead=consistent_read)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "GetItem", context) from e

        item = response.get('Item')
        logger.debug("DynamoDB item fetched", extra={"key": key, "found": item is not None})
        return from_dynamodb_value(item) if item else None

    @tracer.capture_method
    def batch_get_items(
        self,
        keys: List[Dict[str, Any]],
        context: Optional[ErrorContext] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get several items by primary key, preserving the order of ``keys``.

        Missing items are skipped.
        """
        if not keys:
            return []

        found: Dict[str, Dict[str, Any]] = {}
        try:
            for start in range(0, len(keys), BATCH_GET_LIMIT):
                request_items = {
                    self.table_name: {
                        'Keys': keys[start:start + BATCH_GET_LIMIT],
                        'ConsistentRead': True,
                    }
                }
                attempts = 0
                while request_items:
                    if attempts == MAX_BATCH_GET_ATTEMPTS:
                        logger.error("DynamoDB BatchGetItem left keys unprocessed", extra={
                            "attempts": attempts,
                            "table_name": self.table_name,
                        })
                        metrics.add_metric(name="DynamoDBBatchGetItemError", unit=MetricUnit.Count, value=1)
                        raise DALError(
                            message=f"Keys still unprocessed after {attempts} attempts",
                            operation="BatchGetItem",
                            table_name=self.table_name,
                            error_code="BATCH_GET_INCOMPLETE",
                            context=context,
                        )
                    if attempts:
                        time.sleep(min(0.05 * (2 ** attempts), 1.0))
                    response = self.dynamodb.batch_get_item(RequestItems=request_items)
                    for item in response.get('Responses', {}).get(self.table_name, []):
                        found[item['pk']] = from_dynamodb_value(item)
                    request_items = response.get('UnprocessedKeys') or {}
                    attempts += 1
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "BatchGetItem", context) from e

        return [found[key['pk']] for key in keys if key['pk'] in found]

    @tracer.capture_method
    def query_index(
        self,
        partition: str,
        index_name: str = GSI1_INDEX_NAME,
        scan_index_forward: bool = True,
        context: Optional[ErrorContext] = None,
    ) -> List[Dict[str, Any]]:
        """
        Return every item stored under ``partition`` in a secondary index.

        Follows pagination until the partition is exhausted.
        """
        items: List[Dict[str, Any]] = []
        query_kwargs = {
            'IndexName': index_name,
            'KeyConditionExpression': Key('gsi1pk').eq(partition),
            'ScanIndexForward': scan_index_forward,
        }
        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(from_dynamodb_value(item) for item in response.get('Items', []))
                last_evaluated_key = response.get('LastEvaluatedKey')
                if not last_evaluated_key:
                    break
                query_kwargs['ExclusiveStartKey'] = last_evaluated_key
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "Query", context) from e

        return items

    @tracer.capture_method
    def transact_write_items(
        self,
        transact_items: List[Dict[str, Any]],
        context: Optional[ErrorContext] = None,
    ) -> None:
        """
        Apply staged writes atomically.

        Raises:
            TransactionCanceledError: If a condition failed; carries one reason per operation
            TransactionConflictError: If a concurrent transaction touched the same items
            DALError: If DynamoDB operation fails for any other reason
        """
        operation_start = time.time()
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except (ClientError, BotoCoreError, TypeError) as e:
            raise self._translate_error(e, "TransactWriteItems", context) from e

        operation_duration = (time.time() - operation_start) * 1000
        metrics.add_metric(name="DynamoDBTransactWriteItemsDuration", unit=MetricUnit.Milliseconds, value=operation_duration)
        tracer.put_annotation("table_name", self.table_name)
