"""
Business Logic Layer for customers.

This module contains the customer service used by the admin API: reading a
customer with a projection and applying a partial update inside a transaction.
"""

from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit

from commerce_admin.dal.dynamodb_handler import DynamoDBHandler
from commerce_admin.dal.entities import EntityType, entity_key
from commerce_admin.dal.projection import (
    EntityProjection,
    FindConfig,
    embedded,
    indexed_children,
    project,
    referenced_many,
)
from commerce_admin.dal.transaction import Transaction
from commerce_admin.handlers.utils.errors import ErrorContext, ResourceNotFoundError
from commerce_admin.handlers.utils.observability import logger, metrics, tracer
from commerce_admin.logic.events import CUSTOMER_UPDATED, EventPublisher
from commerce_admin.logic.utils import hash_password, merge_metadata, utc_now
from commerce_admin.models.customer import Customer
from commerce_admin.models.input import UpdateCustomerRequest

DEFAULT_ADMIN_CUSTOMER_RELATIONS = ('orders', 'shipping_addresses', 'groups')

CUSTOMER_PROJECTION = EntityProjection(
    resource_type='Customer',
    private_attributes=frozenset({'password_hash', 'group_ids'}),
    relations={
        'orders': indexed_children(EntityType.CUSTOMER),
        'shipping_addresses': embedded('shipping_addresses', default=[]),
        'billing_address': embedded('billing_address'),
        'groups': referenced_many(EntityType.CUSTOMER_GROUP, 'group_ids'),
    },
)

# Writable attributes copied as-is from the validated update
CUSTOMER_PLAIN_FIELDS = ('email', 'first_name', 'last_name', 'phone')


class CustomerNotFoundError(ResourceNotFoundError):
    """Raised when a customer is not found."""

    def __init__(self, customer_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="Customer", resource_id=customer_id, context=context)


class CustomerGroupNotFoundError(ResourceNotFoundError):
    """Raised when an update references a customer group that does not exist."""

    def __init__(self, group_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="CustomerGroup", resource_id=group_id, context=context)


class CustomerService:
    """Business logic service for customers."""

    def __init__(self, dal: DynamoDBHandler, event_publisher: Optional[EventPublisher] = None):
        self.dal = dal
        self.event_publisher = event_publisher or EventPublisher()

    @tracer.capture_method
    def retrieve(
        self,
        customer_id: str,
        config: Optional[FindConfig] = None,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Get a customer projected according to ``config``.

        Raises:
            CustomerNotFoundError: If the customer does not exist
            InvalidDataError: If ``config`` expands an unknown relation
        """
        record = self.dal.get_item(entity_key(EntityType.CUSTOMER, customer_id), context=context)
        if not record:
            raise CustomerNotFoundError(customer_id=customer_id, context=context)

        tracer.put_annotation("customer_id", customer_id)
        return project(self.dal, record, CUSTOMER_PROJECTION, config, context=context)

    @tracer.capture_method
    def update(
        self,
        customer_id: str,
        request: UpdateCustomerRequest,
        transaction: Transaction,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Stage a partial update of a customer on ``transaction``.

        Only the fields present in ``request`` are written. ``metadata`` is merged
        into the stored metadata, ``password`` is stored as a scrypt hash and
        ``groups`` replaces the group membership.

        Returns:
            The attributes staged for writing

        Raises:
            CustomerNotFoundError: If the customer does not exist, now or at commit
            CustomerGroupNotFoundError: At commit, if a referenced group does not exist
        """
        record = self.dal.get_item(entity_key(EntityType.CUSTOMER, customer_id), context=context)
        if not record:
            raise CustomerNotFoundError(customer_id=customer_id, context=context)
        customer = Customer.model_validate(record)

        changes = request.changes()
        set_values: Dict[str, Any] = {
            field: changes[field] for field in CUSTOMER_PLAIN_FIELDS if field in changes
        }

        if 'metadata' in changes:
            set_values['metadata'] = merge_metadata(customer.metadata, changes['metadata'])

        if 'password' in changes:
            set_values['password_hash'] = hash_password(changes['password'])

        if 'groups' in changes:
            group_ids = [group['id'] for group in changes['groups']]
            set_values['group_ids'] = group_ids
            for group_id in group_ids:
                transaction.condition_check(
                    key=entity_key(EntityType.CUSTOMER_GROUP, group_id),
                    condition='attribute_exists(pk)',
                    on_condition_failed=lambda group_id=group_id: CustomerGroupNotFoundError(group_id, context),
                )

        set_values['updated_at'] = utc_now()

        transaction.update(
            key=entity_key(EntityType.CUSTOMER, customer_id),
            set_values=set_values,
            condition='attribute_exists(pk)',
            on_condition_failed=lambda: CustomerNotFoundError(customer_id, context),
        )

        updated_fields = sorted(field for field in set_values if field not in ('password_hash', 'updated_at'))
        if 'password_hash' in set_values:
            updated_fields.append('password')

        def after_commit() -> None:
            metrics.add_metric(name="CustomerUpdated", unit=MetricUnit.Count, value=1)
            logger.info("Customer updated", extra={
                "customer_id": customer_id,
                "updated_fields": updated_fields,
            })
            self.event_publisher.publish(CUSTOMER_UPDATED, {
                'id': customer_id,
                'fields': updated_fields,
            })

        transaction.on_commit(after_commit)

        logger.debug("Customer update staged", extra={
            "customer_id": customer_id,
            "updated_fields": updated_fields,
        })
        return set_values
