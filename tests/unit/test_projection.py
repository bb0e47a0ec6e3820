"""Unit tests for entity projection."""

from unittest.mock import Mock

import pytest

from commerce_admin.dal.entities import EntityType
from commerce_admin.dal.projection import (
    EntityProjection,
    FindConfig,
    embedded,
    indexed_children,
    project,
    referenced_many,
    referenced_one,
)
from commerce_admin.handlers.utils.errors import InvalidDataError

RECORD = {
    "pk": "CUSTOMER#cus_1",
    "sk": "CUSTOMER#cus_1",
    "entity_type": "customer",
    "id": "cus_1",
    "email": "dolly@example.com",
    "first_name": "Dolly",
    "password_hash": "scrypt$...",
    "group_ids": ["cgrp_vip", "cgrp_gone"],
    "shipping_addresses": [{"id": "addr_1"}],
    "billing_address_id": "addr_1",
}

PROJECTION = EntityProjection(
    resource_type="Customer",
    private_attributes=frozenset({"password_hash", "group_ids"}),
    relations={
        "shipping_addresses": embedded("shipping_addresses", default=[]),
        "billing_address": embedded("billing_address"),
        "groups": referenced_many(EntityType.CUSTOMER_GROUP, "group_ids"),
        "orders": indexed_children(EntityType.CUSTOMER, private_attributes=["items"]),
    },
)


@pytest.fixture
def fake_dal():
    dal = Mock()
    dal.batch_get_items.return_value = [
        {"pk": "CUSTOMER_GROUP#cgrp_vip", "sk": "CUSTOMER_GROUP#cgrp_vip", "id": "cgrp_vip", "name": "VIP"},
    ]
    dal.query_index.return_value = [
        {"pk": "ORDER#o1", "gsi1pk": "CUSTOMER#cus_1", "id": "o1", "items": [{"id": "i1"}]},
    ]
    dal.get_item.return_value = None
    return dal


def test_default_projection_hides_storage_private_and_relation_attributes(fake_dal):
    result = project(fake_dal, RECORD, PROJECTION)

    assert result == {
        "id": "cus_1",
        "email": "dolly@example.com",
        "first_name": "Dolly",
        "billing_address_id": "addr_1",
    }
    fake_dal.batch_get_items.assert_not_called()


def test_select_keeps_id_and_ignores_unknown_fields(fake_dal):
    result = project(fake_dal, RECORD, PROJECTION, FindConfig.create(select=["email", "nickname", "password_hash"]))

    assert result == {"id": "cus_1", "email": "dolly@example.com"}


def test_relations_are_attached(fake_dal):
    config = FindConfig.create(relations=["shipping_addresses", "billing_address", "groups", "orders"])

    result = project(fake_dal, RECORD, PROJECTION, config)

    assert result["shipping_addresses"] == [{"id": "addr_1"}]
    assert result["billing_address"] is None
    assert result["groups"] == [{"id": "cgrp_vip", "name": "VIP"}]
    assert result["orders"] == [{"id": "o1"}]
    fake_dal.batch_get_items.assert_called_once_with([
        {"pk": "CUSTOMER_GROUP#cgrp_vip", "sk": "CUSTOMER_GROUP#cgrp_vip"},
        {"pk": "CUSTOMER_GROUP#cgrp_gone", "sk": "CUSTOMER_GROUP#cgrp_gone"},
    ])
    fake_dal.query_index.assert_called_once_with("CUSTOMER#cus_1")


def test_relations_attach_with_select(fake_dal):
    result = project(fake_dal, RECORD, PROJECTION, FindConfig.create(select=["email"], relations=["groups"]))

    assert set(result) == {"id", "email", "groups"}


def test_unknown_relation_is_invalid_data(fake_dal):
    with pytest.raises(InvalidDataError) as exc_info:
        project(fake_dal, RECORD, PROJECTION, FindConfig.create(relations=["groups", "wishlist"]))

    assert "wishlist" in exc_info.value.message
    assert exc_info.value.error_code == "INVALID_DATA"


def test_referenced_one_without_id_skips_lookup(fake_dal):
    resolve = referenced_one(EntityType.RETURN_REASON, "parent_return_reason_id")

    assert resolve(fake_dal, {"id": "rr_1"}) is None
    fake_dal.get_item.assert_not_called()


def test_referenced_one_strips_storage_attributes(fake_dal):
    fake_dal.get_item.return_value = {"pk": "RETURN_REASON#rr_p", "sk": "RETURN_REASON#rr_p", "id": "rr_p"}
    resolve = referenced_one(EntityType.RETURN_REASON, "parent_return_reason_id")

    assert resolve(fake_dal, {"id": "rr_1", "parent_return_reason_id": "rr_p"}) == {"id": "rr_p"}
    fake_dal.get_item.assert_called_once_with({"pk": "RETURN_REASON#rr_p", "sk": "RETURN_REASON#rr_p"})
