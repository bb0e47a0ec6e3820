"""
Single-table key layout for the admin entities.

Every entity is stored under ``pk = sk = <ENTITY>#<id>``. The generic ``GSI1``
index groups entities under a parent: orders under their customer and return
reasons under their parent reason.
"""

from enum import Enum
from typing import Dict

GSI1_INDEX_NAME = 'GSI1'

# Attributes that belong to the table layout rather than to the entity
STORAGE_ATTRIBUTES = frozenset({'pk', 'sk', 'gsi1pk', 'gsi1sk', 'entity_type'})


class EntityType(str, Enum):
    """Key prefixes of the entities stored in the admin table."""

    CUSTOMER = 'CUSTOMER'
    CUSTOMER_GROUP = 'CUSTOMER_GROUP'
    RETURN_REASON = 'RETURN_REASON'
    RETURN_REASON_VALUE = 'RETURN_REASON_VALUE'
    RETURN_REASON_PARENT = 'RETURN_REASON_PARENT'
    ORDER = 'ORDER'
    ORDER_EDIT = 'ORDER_EDIT'


def partition_value(entity_type: EntityType, entity_id: str) -> str:
    return f'{entity_type.value}#{entity_id}'


def entity_key(entity_type: EntityType, entity_id: str) -> Dict[str, str]:
    """Primary key of an entity."""
    value = partition_value(entity_type, entity_id)
    return {'pk': value, 'sk': value}
