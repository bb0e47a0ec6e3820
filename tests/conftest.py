"""
Pytest configuration and shared fixtures for the commerce admin service.

This module provides the mocked DynamoDB table, seed data for customers,
return reasons, orders and order edits, and helpers to drive the Lambda
handler with API Gateway REST events.
"""

import base64
import hashlib
import json
import os
from typing import Any, Dict, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

# Environment must be in place before the service modules are imported
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "TABLE_NAME": "test-admin-table",
    "ENVIRONMENT": "test",
    "POWERTOOLS_SERVICE_NAME": "test-commerce-admin",
    "POWERTOOLS_METRICS_NAMESPACE": "TestCommerceAdmin",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
})
os.environ.pop("EVENT_BUS_NAME", None)
os.environ.pop("DYNAMODB_ENDPOINT", None)

from commerce_admin.dal.dynamodb_handler import DynamoDBHandler, to_dynamodb_value  # noqa: E402
from commerce_admin.dal.entities import EntityType, entity_key, partition_value  # noqa: E402
from commerce_admin.handlers.utils.dependencies import get_dependencies  # noqa: E402

TABLE_NAME = "test-admin-table"
CREATED_AT = "2024-01-01T12:00:00+00:00"


# DynamoDB fixtures
@pytest.fixture
def dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")

        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {"AttributeName": "pk", "KeyType": "HASH"},
                {"AttributeName": "sk", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "pk", "AttributeType": "S"},
                {"AttributeName": "sk", "AttributeType": "S"},
                {"AttributeName": "gsi1pk", "AttributeType": "S"},
                {"AttributeName": "gsi1sk", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "GSI1",
                    "KeySchema": [
                        {"AttributeName": "gsi1pk", "KeyType": "HASH"},
                        {"AttributeName": "gsi1sk", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        table.wait_until_exists()
        yield table


@pytest.fixture
def dal(dynamodb_table) -> DynamoDBHandler:
    return DynamoDBHandler(table_name=TABLE_NAME, region_name="us-east-1")


@pytest.fixture
def stored(dal):
    """Read an entity back from the table as plain Python values."""
    def _stored(entity_type: EntityType, entity_id: str) -> Optional[Dict[str, Any]]:
        return dal.get_item(entity_key(entity_type, entity_id))

    return _stored


# Seed helpers
def put_entity(
    table,
    entity_type: EntityType,
    data: Dict[str, Any],
    parent: Optional[str] = None,
    sort_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Store ``data`` under its entity key, optionally grouped under ``parent`` in GSI1."""
    item = {**entity_key(entity_type, data["id"]), "entity_type": entity_type.value.lower(), **data}
    if parent:
        item["gsi1pk"] = parent
        item["gsi1sk"] = sort_key or partition_value(entity_type, data["id"])
    table.put_item(Item=to_dynamodb_value(item))
    return data


def put_return_reason(table, data: Dict[str, Any]) -> Dict[str, Any]:
    """Store a return reason together with the marker reserving its value."""
    parent_id = data.get("parent_return_reason_id")
    put_entity(
        table,
        EntityType.RETURN_REASON,
        data,
        parent=partition_value(EntityType.RETURN_REASON_PARENT, parent_id) if parent_id else None,
    )
    table.put_item(Item={
        **entity_key(EntityType.RETURN_REASON_VALUE, data["value"]),
        "entity_type": "return_reason_value",
        "return_reason_id": data["id"],
    })
    return data


def line_item(item_id: str, unit_price: int, quantity: int, tax_rate: float = 25, discount: int = 0) -> Dict[str, Any]:
    item = {
        "id": item_id,
        "title": f"Product {item_id}",
        "variant_id": f"variant_{item_id}",
        "unit_price": unit_price,
        "quantity": quantity,
        "tax_rate": tax_rate,
        "adjustments": [],
    }
    if discount:
        item["adjustments"].append({"amount": discount, "description": "Summer sale"})
    return item


@pytest.fixture
def password_matches():
    """Check a password against a stored scrypt credential."""
    def _matches(password: str, password_hash: str) -> bool:
        scheme, n, r, p, encoded_salt, encoded_key = password_hash.split("$")
        expected = base64.b64decode(encoded_key)
        derived = hashlib.scrypt(
            password.encode("utf-8"),
            salt=base64.b64decode(encoded_salt),
            n=int(n),
            r=int(r),
            p=int(p),
            dklen=len(expected),
        )
        return scheme == "scrypt" and derived == expected

    return _matches


# Sample data fixtures
@pytest.fixture
def customer_groups(dynamodb_table):
    return [
        put_entity(dynamodb_table, EntityType.CUSTOMER_GROUP, {
            "id": group_id,
            "name": name,
            "created_at": CREATED_AT,
            "updated_at": CREATED_AT,
        })
        for group_id, name in (("cgrp_vip", "VIP"), ("cgrp_wholesale", "Wholesale"))
    ]


@pytest.fixture
def customer(dynamodb_table, customer_groups) -> Dict[str, Any]:
    """Guest customer ``cus_1`` with one order."""
    data = put_entity(dynamodb_table, EntityType.CUSTOMER, {
        "id": "cus_1",
        "email": "dolly@example.com",
        "first_name": "Dolly",
        "last_name": "Parton",
        "phone": "+1 555 0100",
        "has_account": False,
        "group_ids": ["cgrp_vip"],
        "shipping_addresses": [{"id": "addr_1", "city": "Nashville", "country_code": "us"}],
        "metadata": {"source": "import", "tier": "gold"},
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })
    put_entity(dynamodb_table, EntityType.ORDER, {
        "id": "order_cus_1",
        "customer_id": "cus_1",
        "email": "dolly@example.com",
        "items": [line_item("item_a", 1000, 1)],
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }, parent=partition_value(EntityType.CUSTOMER, "cus_1"))
    return data


@pytest.fixture
def registered_customer(dynamodb_table) -> Dict[str, Any]:
    """Customer ``cus_2`` that registered an account."""
    return put_entity(dynamodb_table, EntityType.CUSTOMER, {
        "id": "cus_2",
        "email": "ada@example.com",
        "first_name": "Ada",
        "has_account": True,
        "password_hash": "scrypt$16384$8$1$c2FsdA==$a2V5",
        "metadata": {},
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })


@pytest.fixture
def return_reasons(dynamodb_table) -> Dict[str, Dict[str, Any]]:
    """Parent reason ``rr_parent`` with children ``rr_1`` and ``rr_2``."""
    parent = put_return_reason(dynamodb_table, {
        "id": "rr_parent",
        "value": "defective",
        "label": "Defective",
        "description": "Item does not work",
        "metadata": {},
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })
    rr_1 = put_return_reason(dynamodb_table, {
        "id": "rr_1",
        "value": "broken",
        "label": "Broken",
        "description": "Arrived broken",
        "parent_return_reason_id": "rr_parent",
        "metadata": {"priority": "high"},
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })
    rr_2 = put_return_reason(dynamodb_table, {
        "id": "rr_2",
        "value": "wrong_size",
        "label": "Wrong size",
        "parent_return_reason_id": "rr_parent",
        "metadata": {},
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })
    return {"rr_parent": parent, "rr_1": rr_1, "rr_2": rr_2}


@pytest.fixture
def order(dynamodb_table) -> Dict[str, Any]:
    """Order ``order_1``: paid 4000, one shipping method of 1000 taxed at 25%."""
    return put_entity(dynamodb_table, EntityType.ORDER, {
        "id": "order_1",
        "display_id": 1,
        "customer_id": "cus_1",
        "email": "dolly@example.com",
        "status": "pending",
        "currency_code": "usd",
        "items": [line_item("item_1", 1500, 1)],
        "shipping_methods": [{"id": "sm_1", "name": "Standard", "price": 1000, "tax_rate": 25}],
        "paid_total": 4000,
        "refunded_total": 0,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    })


def order_edit_data(order_edit_id: str, status: str, **fields: Any) -> Dict[str, Any]:
    data = {
        "id": order_edit_id,
        "order_id": "order_1",
        "status": status,
        "internal_note": "Customer asked for a second shirt",
        "items": [
            line_item("item_1_edit", 1500, 2, discount=500),
            line_item("item_2_edit", 999, 1),
        ],
        "changes": [
            {"id": "oic_1", "type": "item_update", "line_item_id": "item_1_edit", "original_line_item_id": "item_1"},
            {"id": "oic_2", "type": "item_add", "line_item_id": "item_2_edit"},
        ],
        "created_by": "admin_1",
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    data.update(fields)
    return data


@pytest.fixture
def make_order_edit(dynamodb_table, order):
    """Store an order edit on ``order_1`` with the given status."""
    def _make(order_edit_id: str, status: str, **fields: Any) -> Dict[str, Any]:
        return put_entity(dynamodb_table, EntityType.ORDER_EDIT, order_edit_data(order_edit_id, status, **fields))

    return _make


@pytest.fixture
def order_edit(make_order_edit) -> Dict[str, Any]:
    """Requested order edit ``oe_1`` on ``order_1``."""
    return make_order_edit("oe_1", "requested", requested_by="admin_1", requested_at=CREATED_AT)


# Lambda fixtures
@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-commerce-admin"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-commerce-admin"
    context.memory_limit_in_mb = "512"
    context.remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-commerce-admin"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


def api_gateway_event(
    path: str,
    body: Any = None,
    query: Optional[Dict[str, str]] = None,
    authorizer: Optional[Dict[str, Any]] = None,
    method: str = "POST",
) -> Dict[str, Any]:
    """Build an API Gateway REST proxy event."""
    request_context = {
        "requestId": "test-request-id-123",
        "accountId": "123456789012",
        "stage": "test",
        "httpMethod": method,
        "path": path,
        "resourcePath": path,
        "protocol": "HTTP/1.1",
        "requestTime": "01/Jan/2024:12:00:00 +0000",
        "requestTimeEpoch": 1704110400000,
        "identity": {
            "sourceIp": "127.0.0.1",
            "userAgent": "test-agent/1.0",
        },
    }
    if authorizer is not None:
        request_context["authorizer"] = authorizer

    return {
        "resource": path,
        "httpMethod": method,
        "path": path,
        "headers": {
            "Content-Type": "application/json",
            "User-Agent": "test-agent/1.0",
        },
        "multiValueHeaders": {
            "Content-Type": ["application/json"],
            "User-Agent": ["test-agent/1.0"],
        },
        "body": body if body is None or isinstance(body, str) else json.dumps(body),
        "requestContext": request_context,
        "pathParameters": None,
        "queryStringParameters": query,
        "multiValueQueryStringParameters": {k: [v] for k, v in query.items()} if query else None,
        "stageVariables": None,
        "isBase64Encoded": False,
    }


@pytest.fixture
def invoke(dynamodb_table, lambda_context):
    """Call the Lambda handler and return ``(status_code, parsed_body)``."""
    from commerce_admin.handlers.admin_handler import lambda_handler

    def _invoke(path: str, body: Any = None, query=None, authorizer=None):
        response = lambda_handler(api_gateway_event(path, body=body, query=query, authorizer=authorizer), lambda_context)
        return response["statusCode"], json.loads(response["body"])

    return _invoke


@pytest.fixture(autouse=True)
def reset_dependencies():
    """Rebuild services per test so they bind to the active moto mock."""
    get_dependencies.cache_clear()
    yield
    get_dependencies.cache_clear()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
