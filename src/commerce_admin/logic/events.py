"""
Domain event publishing to Amazon EventBridge.

Events are published after the transaction that produced them has committed,
so a publishing failure cannot undo the write: failures are logged and counted
instead of being raised to the caller.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from commerce_admin.handlers.utils.observability import logger, metrics, tracer

EVENT_SOURCE = 'commerce.admin'

CUSTOMER_UPDATED = 'customer.updated'
ORDER_EDIT_CONFIRMED = 'order-edit.confirmed'


class EventPublisher:
    """Publishes domain events to one EventBridge bus; a no-op without a bus."""

    def __init__(
        self,
        event_bus_name: Optional[str] = None,
        region_name: Optional[str] = None,
        eventbridge_client: Optional[Any] = None,
    ):
        """
        Initialize the publisher.

        Args:
            event_bus_name: Name of the EventBridge bus, publishing is disabled when empty
            region_name: AWS region
            eventbridge_client: EventBridge client, created on demand when omitted
        """
        self.event_bus_name = event_bus_name
        self.region_name = region_name
        self._client = eventbridge_client

    @property
    def enabled(self) -> bool:
        return bool(self.event_bus_name)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client('events', region_name=self.region_name) if self.region_name else boto3.client('events')
        return self._client

    @tracer.capture_method
    def publish(self, event_name: str, data: Dict[str, Any]) -> None:
        """
        Publish ``event_name`` with ``data`` as its detail.

        Args:
            event_name: Event name, e.g. ``customer.updated``
            data: JSON-serializable event payload
        """
        if not self.enabled:
            logger.debug("Event bus not configured, skipping event", extra={"event_name": event_name})
            return

        detail = {
            **data,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = self.client.put_events(
                Entries=[
                    {
                        'Source': EVENT_SOURCE,
                        'DetailType': event_name,
                        'Detail': json.dumps(detail),
                        'EventBusName': self.event_bus_name,
                    }
                ]
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to publish domain event", extra={
                "event_name": event_name,
                "error": str(e),
            })
            metrics.add_metric(name="DomainEventPublishFailure", unit=MetricUnit.Count, value=1)
            return

        if response.get('FailedEntryCount'):
            logger.error("EventBridge rejected domain event", extra={
                "event_name": event_name,
                "entries": response.get('Entries'),
            })
            metrics.add_metric(name="DomainEventPublishFailure", unit=MetricUnit.Count, value=1)
            return

        metrics.add_metric(name="DomainEventPublished", unit=MetricUnit.Count, value=1)
        logger.info("Domain event published", extra={"event_name": event_name})
