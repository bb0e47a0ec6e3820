"""
Business Logic Layer for order edits.

Confirming an order edit applies the edit's line items to its parent order and
stamps who confirmed it. Both writes are staged on the caller's transaction so
they commit together.
"""

from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit

from commerce_admin.dal.dynamodb_handler import DynamoDBHandler
from commerce_admin.dal.entities import EntityType, entity_key
from commerce_admin.dal.projection import EntityProjection, FindConfig, embedded, project, referenced_one
from commerce_admin.dal.transaction import Transaction
from commerce_admin.handlers.utils.errors import ErrorContext, InvalidStateError, ResourceNotFoundError
from commerce_admin.handlers.utils.observability import logger, metrics, tracer
from commerce_admin.logic.events import ORDER_EDIT_CONFIRMED, EventPublisher
from commerce_admin.logic.totals import compute_order_edit_totals
from commerce_admin.logic.utils import utc_now
from commerce_admin.models.order_edit import CONFIRMABLE_STATUSES, LineItem, Order, OrderEdit, OrderEditStatus

DEFAULT_ADMIN_ORDER_EDIT_FIELDS = (
    'id',
    'order_id',
    'status',
    'internal_note',
    'created_by',
    'requested_by',
    'requested_at',
    'confirmed_by',
    'confirmed_at',
    'declined_by',
    'declined_reason',
    'declined_at',
    'canceled_by',
    'canceled_at',
    'created_at',
    'updated_at',
)

DEFAULT_ADMIN_ORDER_EDIT_RELATIONS = ('items', 'changes')

ORDER_EDIT_PROJECTION = EntityProjection(
    resource_type='OrderEdit',
    relations={
        'items': embedded('items', default=[]),
        'changes': embedded('changes', default=[]),
        'order': referenced_one(EntityType.ORDER, 'order_id'),
    },
)


class OrderEditNotFoundError(ResourceNotFoundError):
    """Raised when an order edit is not found."""

    def __init__(self, order_edit_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="OrderEdit", resource_id=order_edit_id, context=context)


class OrderNotFoundError(ResourceNotFoundError):
    """Raised when the order an edit applies to is not found."""

    def __init__(self, order_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="Order", resource_id=order_id, context=context)


class OrderEditStateError(InvalidStateError):
    """Raised when an order edit cannot be confirmed from its current status."""

    def __init__(self, order_edit_id: str, status: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Cannot confirm order edit '{order_edit_id}' with status {status}",
            context=context,
        )
        self.order_edit_id = order_edit_id
        self.status = status


class OrderEditService:
    """Business logic service for order edits."""

    def __init__(self, dal: DynamoDBHandler, event_publisher: Optional[EventPublisher] = None):
        self.dal = dal
        self.event_publisher = event_publisher or EventPublisher()

    def _load(self, order_edit_id: str, context: Optional[ErrorContext]) -> Dict[str, Any]:
        record = self.dal.get_item(entity_key(EntityType.ORDER_EDIT, order_edit_id), context=context)
        if not record:
            raise OrderEditNotFoundError(order_edit_id=order_edit_id, context=context)
        return record

    def _load_order(self, order_id: str, context: Optional[ErrorContext]) -> Order:
        record = self.dal.get_item(entity_key(EntityType.ORDER, order_id), context=context)
        if not record:
            raise OrderNotFoundError(order_id=order_id, context=context)
        return Order.model_validate(record)

    @tracer.capture_method
    def retrieve(
        self,
        order_edit_id: str,
        config: Optional[FindConfig] = None,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Get an order edit projected according to ``config``.

        Raises:
            OrderEditNotFoundError: If the order edit does not exist
        """
        record = self._load(order_edit_id, context)
        tracer.put_annotation("order_edit_id", order_edit_id)
        return project(self.dal, record, ORDER_EDIT_PROJECTION, config, context=context)

    @tracer.capture_method
    def confirm(
        self,
        order_edit_id: str,
        confirmed_by: str,
        transaction: Transaction,
        context: Optional[ErrorContext] = None,
    ) -> OrderEdit:
        """
        Stage the confirmation of an order edit on ``transaction``.

        Confirming an edit that is already confirmed changes nothing and returns
        the stored edit.

        Args:
            order_edit_id: Order edit to confirm
            confirmed_by: Id of the acting user
            transaction: Transaction the writes are staged on
            context: Error context

        Returns:
            The order edit as it will be stored after commit

        Raises:
            OrderEditNotFoundError: If the order edit does not exist
            OrderEditStateError: If the edit is declined or canceled, now or at commit
            OrderNotFoundError: At commit, if the parent order does not exist
        """
        order_edit = OrderEdit.model_validate(self._load(order_edit_id, context))

        if order_edit.status == OrderEditStatus.CONFIRMED:
            logger.info("Order edit already confirmed", extra={
                "order_edit_id": order_edit_id,
                "confirmed_by": order_edit.confirmed_by,
            })
            return order_edit

        if order_edit.status not in CONFIRMABLE_STATUSES:
            raise OrderEditStateError(order_edit_id, order_edit.status.value, context=context)

        now = utc_now()
        current_status = order_edit.status.value

        transaction.update(
            key=entity_key(EntityType.ORDER_EDIT, order_edit_id),
            set_values={
                'status': OrderEditStatus.CONFIRMED.value,
                'confirmed_by': confirmed_by,
                'confirmed_at': now,
                'updated_at': now,
            },
            condition='#status IN (:created, :requested)',
            names={'#status': 'status'},
            values={
                ':created': OrderEditStatus.CREATED.value,
                ':requested': OrderEditStatus.REQUESTED.value,
            },
            on_condition_failed=lambda: OrderEditStateError(order_edit_id, current_status, context),
        )

        transaction.update(
            key=entity_key(EntityType.ORDER, order_edit.order_id),
            set_values={
                'items': [item.model_dump() for item in order_edit.items],
                'updated_at': now,
            },
            condition='attribute_exists(pk)',
            on_condition_failed=lambda: OrderNotFoundError(order_edit.order_id, context),
        )

        def after_commit() -> None:
            metrics.add_metric(name="OrderEditConfirmed", unit=MetricUnit.Count, value=1)
            logger.info("Order edit confirmed", extra={
                "order_edit_id": order_edit_id,
                "order_id": order_edit.order_id,
                "confirmed_by": confirmed_by,
            })
            self.event_publisher.publish(ORDER_EDIT_CONFIRMED, {
                'id': order_edit_id,
                'order_id': order_edit.order_id,
                'confirmed_by': confirmed_by,
            })

        transaction.on_commit(after_commit)

        return order_edit.model_copy(update={
            'status': OrderEditStatus.CONFIRMED,
            'confirmed_by': confirmed_by,
            'confirmed_at': now,
            'updated_at': now,
        })

    @tracer.capture_method
    def decorate_totals(
        self,
        order_edit: Dict[str, Any],
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Add the computed totals to a projected order edit.

        Totals come from the edit's current line items and the parent order's
        shipping methods and payments. The stored items are used when the
        projection left them out.

        Returns:
            A new dict with ``subtotal``, ``discount_total``, ``shipping_total``,
            ``tax_total``, ``total`` and ``difference_due`` added
        """
        record = None
        items = order_edit.get('items')
        order_id = order_edit.get('order_id')
        if items is None or order_id is None:
            record = self._load(order_edit['id'], context)
            items = record.get('items', []) if items is None else items
            order_id = order_id or record['order_id']

        order = self._load_order(order_id, context)
        totals = compute_order_edit_totals(
            items=[LineItem.model_validate(item) for item in items],
            shipping_methods=order.shipping_methods,
            paid_total=order.paid_total,
            refunded_total=order.refunded_total,
        )
        return {**order_edit, **totals.as_dict()}
