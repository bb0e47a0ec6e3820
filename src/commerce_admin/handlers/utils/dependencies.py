"""
Service wiring for the admin handler.

Services are built on first use from the environment and reused across warm
invocations of the Lambda container.
"""

from dataclasses import dataclass
from functools import lru_cache

from commerce_admin.dal import get_dal_handler
from commerce_admin.dal.transaction import TransactionManager
from commerce_admin.handlers.models.env_vars import get_handler_env_vars
from commerce_admin.logic.customer_service import CustomerService
from commerce_admin.logic.events import EventPublisher
from commerce_admin.logic.order_edit_service import OrderEditService
from commerce_admin.logic.return_reason_service import ReturnReasonService


@dataclass(frozen=True)
class AdminDependencies:
    customer_service: CustomerService
    return_reason_service: ReturnReasonService
    order_edit_service: OrderEditService
    transaction_manager: TransactionManager


@lru_cache(maxsize=1)
def get_dependencies() -> AdminDependencies:
    env_vars = get_handler_env_vars()

    dal = get_dal_handler(
        table_name=env_vars.TABLE_NAME,
        region_name=env_vars.AWS_REGION,
        endpoint_url=env_vars.DYNAMODB_ENDPOINT,  # For local testing
    )
    event_publisher = EventPublisher(event_bus_name=env_vars.EVENT_BUS_NAME, region_name=env_vars.AWS_REGION)

    return AdminDependencies(
        customer_service=CustomerService(dal, event_publisher=event_publisher),
        return_reason_service=ReturnReasonService(dal),
        order_edit_service=OrderEditService(dal, event_publisher=event_publisher),
        transaction_manager=TransactionManager(dal),
    )
