"""Unit tests for the DynamoDB handler with the boto3 resource replaced by a mock."""

from unittest.mock import Mock, patch

import pytest

from commerce_admin.dal.dynamodb_handler import MAX_BATCH_GET_ATTEMPTS, DALError, DynamoDBHandler

KEY_A = {"pk": "CUSTOMER#a", "sk": "CUSTOMER#a"}
KEY_B = {"pk": "CUSTOMER#b", "sk": "CUSTOMER#b"}


@pytest.fixture
def handler():
    dal = DynamoDBHandler(table_name="test-admin-table", region_name="us-east-1")
    dal.dynamodb = Mock()
    return dal


@patch("commerce_admin.dal.dynamodb_handler.time.sleep")
def test_batch_get_retries_unprocessed_keys(sleep, handler):
    handler.dynamodb.batch_get_item.side_effect = [
        {
            "Responses": {"test-admin-table": [{**KEY_B, "id": "b"}]},
            "UnprocessedKeys": {"test-admin-table": {"Keys": [KEY_A]}},
        },
        {"Responses": {"test-admin-table": [{**KEY_A, "id": "a"}]}},
    ]

    items = handler.batch_get_items([KEY_A, KEY_B])

    assert [item["id"] for item in items] == ["a", "b"]
    assert handler.dynamodb.batch_get_item.call_count == 2
    sleep.assert_called_once()


@patch("commerce_admin.dal.dynamodb_handler.time.sleep")
def test_batch_get_gives_up_on_unprocessed_keys(sleep, handler):
    handler.dynamodb.batch_get_item.return_value = {
        "Responses": {},
        "UnprocessedKeys": {"test-admin-table": {"Keys": [KEY_A]}},
    }

    with pytest.raises(DALError) as exc_info:
        handler.batch_get_items([KEY_A])

    assert exc_info.value.error_code == "BATCH_GET_INCOMPLETE"
    assert handler.dynamodb.batch_get_item.call_count == MAX_BATCH_GET_ATTEMPTS


def test_unserializable_value_becomes_dal_error(handler):
    handler.dynamodb.meta.client.transact_write_items.side_effect = TypeError(
        "Float types are not supported. Use Decimal types instead."
    )

    with pytest.raises(DALError) as exc_info:
        handler.transact_write_items([{"Put": {"TableName": "test-admin-table", "Item": {"x": float("nan")}}}])

    assert exc_info.value.error_code == "DYNAMODB_SERIALIZATION_ERROR"
    assert isinstance(exc_info.value.__cause__, TypeError)
