"""
Scoped write transactions over DynamoDB.

A ``Transaction`` stages writes while a unit of work runs; nothing is sent to
DynamoDB until the scope exits cleanly, at which point every staged write is
applied atomically with a single ``TransactWriteItems`` call. If the unit of
work raises, the staged writes are discarded and the error propagates::

    with transaction_manager.transaction() as txn:
        customer_service.update(customer_id, request, transaction=txn)

Each staged operation may carry an error factory. When DynamoDB cancels the
transaction because that operation's condition failed, the factory's domain
error is raised instead of a generic data access error.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from aws_lambda_powertools.metrics import MetricUnit

from commerce_admin.dal.dynamodb_handler import (
    DynamoDBHandler,
    TransactionCanceledError,
    to_dynamodb_value,
)
from commerce_admin.handlers.utils.errors import BaseServiceError, ErrorContext
from commerce_admin.handlers.utils.observability import logger, metrics, tracer

# DynamoDB limit on the number of operations in one transaction
MAX_TRANSACTION_ITEMS = 100

ErrorFactory = Callable[[], BaseServiceError]


class TransactionClosedError(RuntimeError):
    """Raised when staging on a transaction that was already committed or discarded."""


class Transaction:
    """Writes staged for one atomic commit."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        self._items: List[Dict[str, Any]] = []
        self._error_factories: List[Optional[ErrorFactory]] = []
        self._commit_hooks: List[Callable[[], None]] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._items)

    @property
    def transact_items(self) -> List[Dict[str, Any]]:
        return list(self._items)

    def _stage(self, operation: str, body: Dict[str, Any], on_condition_failed: Optional[ErrorFactory]) -> None:
        if self._closed:
            raise TransactionClosedError("Cannot stage writes on a closed transaction")
        if len(self._items) >= MAX_TRANSACTION_ITEMS:
            raise ValueError(f"A transaction holds at most {MAX_TRANSACTION_ITEMS} operations")
        body['TableName'] = self.table_name
        self._items.append({operation: body})
        self._error_factories.append(on_condition_failed)

    @staticmethod
    def _with_condition(
        body: Dict[str, Any],
        condition: Optional[str],
        names: Optional[Mapping[str, str]],
        values: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        if condition:
            body['ConditionExpression'] = condition
        if names:
            body.setdefault('ExpressionAttributeNames', {}).update(names)
        if values:
            body.setdefault('ExpressionAttributeValues', {}).update(to_dynamodb_value(dict(values)))
        return body

    def update(
        self,
        key: Dict[str, Any],
        set_values: Mapping[str, Any],
        remove: Sequence[str] = (),
        condition: Optional[str] = None,
        names: Optional[Mapping[str, str]] = None,
        values: Optional[Mapping[str, Any]] = None,
        on_condition_failed: Optional[ErrorFactory] = None,
    ) -> None:
        """
        Stage an update of top-level attributes.

        Args:
            key: Primary key of the item
            set_values: Attributes to set, by name
            remove: Attributes to remove, by name
            condition: Optional condition expression; may use ``names``/``values`` placeholders
            names: Placeholders used by ``condition``
            values: Placeholders used by ``condition``
            on_condition_failed: Factory of the error raised if ``condition`` fails
        """
        if not set_values and not remove:
            raise ValueError("An update needs at least one attribute to set or remove")

        expression_names: Dict[str, str] = {}
        expression_values: Dict[str, Any] = {}
        clauses = []

        set_parts = []
        for index, (attribute, value) in enumerate(set_values.items()):
            expression_names[f'#set{index}'] = attribute
            expression_values[f':set{index}'] = value
            set_parts.append(f'#set{index} = :set{index}')
        if set_parts:
            clauses.append('SET ' + ', '.join(set_parts))

        remove_parts = []
        for index, attribute in enumerate(remove):
            expression_names[f'#rem{index}'] = attribute
            remove_parts.append(f'#rem{index}')
        if remove_parts:
            clauses.append('REMOVE ' + ', '.join(remove_parts))

        body = {
            'Key': key,
            'UpdateExpression': ' '.join(clauses),
            'ExpressionAttributeNames': expression_names,
        }
        if expression_values:
            body['ExpressionAttributeValues'] = to_dynamodb_value(expression_values)

        self._stage('Update', self._with_condition(body, condition, names, values), on_condition_failed)

    def put(
        self,
        item: Dict[str, Any],
        condition: Optional[str] = None,
        names: Optional[Mapping[str, str]] = None,
        values: Optional[Mapping[str, Any]] = None,
        on_condition_failed: Optional[ErrorFactory] = None,
    ) -> None:
        """Stage a full item write."""
        body = {'Item': to_dynamodb_value(item)}
        self._stage('Put', self._with_condition(body, condition, names, values), on_condition_failed)

    def delete(
        self,
        key: Dict[str, Any],
        condition: Optional[str] = None,
        names: Optional[Mapping[str, str]] = None,
        values: Optional[Mapping[str, Any]] = None,
        on_condition_failed: Optional[ErrorFactory] = None,
    ) -> None:
        """Stage an item deletion."""
        body = {'Key': key}
        self._stage('Delete', self._with_condition(body, condition, names, values), on_condition_failed)

    def condition_check(
        self,
        key: Dict[str, Any],
        condition: str,
        names: Optional[Mapping[str, str]] = None,
        values: Optional[Mapping[str, Any]] = None,
        on_condition_failed: Optional[ErrorFactory] = None,
    ) -> None:
        """Stage a condition on an item the transaction does not write."""
        body = {'Key': key}
        self._stage('ConditionCheck', self._with_condition(body, condition, names, values), on_condition_failed)

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the transaction has committed."""
        self._commit_hooks.append(callback)

    def error_for(self, reasons: Sequence[str]) -> Optional[BaseServiceError]:
        """Domain error registered for the first operation whose condition failed."""
        for reason, factory in zip(reasons, self._error_factories):
            if reason == 'ConditionalCheckFailed' and factory is not None:
                return factory()
        return None

    def close(self) -> List[Callable[[], None]]:
        self._closed = True
        hooks, self._commit_hooks = self._commit_hooks, []
        return hooks

    def discard(self) -> None:
        self._closed = True
        self._items.clear()
        self._error_factories.clear()
        self._commit_hooks.clear()


class TransactionManager:
    """Opens write transactions against one DynamoDB table."""

    def __init__(self, dal: DynamoDBHandler):
        self.dal = dal

    @contextmanager
    def transaction(self, context: Optional[ErrorContext] = None) -> Iterator[Transaction]:
        """
        Scope a unit of work: commit on normal exit, discard staged writes on error.

        Raises:
            BaseServiceError: The error registered for a failed condition, or a DAL error
        """
        txn = Transaction(self.dal.table_name)
        try:
            yield txn
        except Exception:
            logger.warning("Rolling back transaction", extra={
                "staged_operations": len(txn),
                "operation": context.operation if context else None,
            })
            metrics.add_metric(name="TransactionRolledBack", unit=MetricUnit.Count, value=1)
            txn.discard()
            raise

        self._commit(txn, context)

        for hook in txn.close():
            hook()

    @tracer.capture_method
    def _commit(self, txn: Transaction, context: Optional[ErrorContext]) -> None:
        if not len(txn):
            logger.debug("Transaction staged no writes, nothing to commit")
            return

        try:
            self.dal.transact_write_items(txn.transact_items, context=context)
        except TransactionCanceledError as e:
            metrics.add_metric(name="TransactionRolledBack", unit=MetricUnit.Count, value=1)
            domain_error = txn.error_for(e.reasons)
            txn.discard()
            if domain_error is not None:
                domain_error.context = domain_error.context or context
                raise domain_error from e
            raise
        except BaseServiceError:
            metrics.add_metric(name="TransactionRolledBack", unit=MetricUnit.Count, value=1)
            txn.discard()
            raise

        metrics.add_metric(name="TransactionCommitted", unit=MetricUnit.Count, value=1)
        logger.info("Transaction committed", extra={
            "staged_operations": len(txn),
            "operation": context.operation if context else None,
        })
