"""
Business Logic Layer for return reasons.

Return reason ``value`` codes are unique. Uniqueness is enforced with one
marker item per value (``RETURN_REASON_VALUE#<value>``) that is moved inside the
same transaction as the reason itself whenever the value changes.
"""

from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit

from commerce_admin.dal.dynamodb_handler import DynamoDBHandler
from commerce_admin.dal.entities import EntityType, entity_key
from commerce_admin.dal.projection import (
    EntityProjection,
    FindConfig,
    indexed_children,
    project,
    referenced_one,
)
from commerce_admin.dal.transaction import Transaction
from commerce_admin.handlers.utils.errors import DuplicateError, ErrorContext, ResourceNotFoundError
from commerce_admin.handlers.utils.observability import logger, metrics, tracer
from commerce_admin.logic.utils import merge_metadata, utc_now
from commerce_admin.models.input import UpdateReturnReasonRequest
from commerce_admin.models.return_reason import ReturnReason

DEFAULT_ADMIN_RETURN_REASON_FIELDS = (
    'id',
    'value',
    'label',
    'parent_return_reason_id',
    'description',
    'metadata',
    'created_at',
    'updated_at',
)

DEFAULT_ADMIN_RETURN_REASON_RELATIONS = ('parent_return_reason', 'return_reason_children')

RETURN_REASON_PROJECTION = EntityProjection(
    resource_type='ReturnReason',
    relations={
        'parent_return_reason': referenced_one(EntityType.RETURN_REASON, 'parent_return_reason_id'),
        'return_reason_children': indexed_children(EntityType.RETURN_REASON_PARENT),
    },
)

RETURN_REASON_PLAIN_FIELDS = ('label', 'value', 'description')


class ReturnReasonNotFoundError(ResourceNotFoundError):
    """Raised when a return reason is not found."""

    def __init__(self, return_reason_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="ReturnReason", resource_id=return_reason_id, context=context)


class DuplicateReturnReasonValueError(DuplicateError):
    """Raised when another return reason already uses a value code."""

    def __init__(self, value: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"A return reason with value '{value}' already exists",
            context=context,
        )
        self.value = value


def value_marker_key(value: str) -> Dict[str, str]:
    return entity_key(EntityType.RETURN_REASON_VALUE, value)


class ReturnReasonService:
    """Business logic service for return reasons."""

    def __init__(self, dal: DynamoDBHandler):
        self.dal = dal

    @tracer.capture_method
    def retrieve(
        self,
        return_reason_id: str,
        config: Optional[FindConfig] = None,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Get a return reason projected according to ``config``.

        Raises:
            ReturnReasonNotFoundError: If the return reason does not exist
        """
        record = self.dal.get_item(entity_key(EntityType.RETURN_REASON, return_reason_id), context=context)
        if not record:
            raise ReturnReasonNotFoundError(return_reason_id=return_reason_id, context=context)

        tracer.put_annotation("return_reason_id", return_reason_id)
        return project(self.dal, record, RETURN_REASON_PROJECTION, config, context=context)

    @tracer.capture_method
    def update(
        self,
        return_reason_id: str,
        request: UpdateReturnReasonRequest,
        transaction: Transaction,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Stage a partial update of a return reason on ``transaction``.

        Returns:
            The attributes staged for writing

        Raises:
            ReturnReasonNotFoundError: If the return reason does not exist, now or at commit
            DuplicateReturnReasonValueError: At commit, if the new value is already taken
        """
        record = self.dal.get_item(entity_key(EntityType.RETURN_REASON, return_reason_id), context=context)
        if not record:
            raise ReturnReasonNotFoundError(return_reason_id=return_reason_id, context=context)
        reason = ReturnReason.model_validate(record)

        changes = request.changes()
        set_values: Dict[str, Any] = {
            field: changes[field] for field in RETURN_REASON_PLAIN_FIELDS if field in changes
        }

        if 'metadata' in changes:
            set_values['metadata'] = merge_metadata(reason.metadata, changes['metadata'])

        new_value = set_values.get('value')
        if new_value is not None and new_value != reason.value:
            transaction.put(
                item={
                    **value_marker_key(new_value),
                    'entity_type': 'return_reason_value',
                    'return_reason_id': return_reason_id,
                },
                condition='attribute_not_exists(pk)',
                on_condition_failed=lambda: DuplicateReturnReasonValueError(new_value, context),
            )
            transaction.delete(
                key=value_marker_key(reason.value),
                condition='attribute_not_exists(pk) OR return_reason_id = :return_reason_id',
                values={':return_reason_id': return_reason_id},
            )
        else:
            set_values.pop('value', None)

        set_values['updated_at'] = utc_now()

        transaction.update(
            key=entity_key(EntityType.RETURN_REASON, return_reason_id),
            set_values=set_values,
            condition='attribute_exists(pk)',
            on_condition_failed=lambda: ReturnReasonNotFoundError(return_reason_id, context),
        )

        updated_fields = sorted(field for field in set_values if field != 'updated_at')

        def after_commit() -> None:
            metrics.add_metric(name="ReturnReasonUpdated", unit=MetricUnit.Count, value=1)
            logger.info("Return reason updated", extra={
                "return_reason_id": return_reason_id,
                "updated_fields": updated_fields,
            })

        transaction.on_commit(after_commit)
        return set_values
