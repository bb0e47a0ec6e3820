"""
Field and relation projection for entities read back from the admin table.

A ``FindConfig`` names the fields to keep (``select``) and the relations to
attach (``relations``). Relations are declared per entity as resolvers: some
expose attributes embedded on the item itself, others load related items from
the table by id, by id list, or through the ``GSI1`` index.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from commerce_admin.dal.dynamodb_handler import DynamoDBHandler
from commerce_admin.dal.entities import STORAGE_ATTRIBUTES, EntityType, entity_key, partition_value
from commerce_admin.handlers.utils.errors import ErrorContext, InvalidDataError

RelationResolver = Callable[[DynamoDBHandler, Dict[str, Any]], Any]


@dataclass(frozen=True)
class FindConfig:
    """Projection requested for a read: selected fields and expanded relations."""

    select: Optional[Tuple[str, ...]] = None
    relations: Tuple[str, ...] = ()

    @classmethod
    def create(cls, select: Optional[Iterable[str]] = None, relations: Iterable[str] = ()) -> 'FindConfig':
        return cls(
            select=tuple(select) if select else None,
            relations=tuple(relations),
        )


@dataclass(frozen=True)
class EntityProjection:
    """How an entity type is exposed: private attributes and resolvable relations."""

    resource_type: str
    private_attributes: frozenset = frozenset()
    relations: Mapping[str, RelationResolver] = field(default_factory=dict)

    @property
    def hidden_attributes(self) -> frozenset:
        # Embedded relations stay hidden unless the relation is requested
        return STORAGE_ATTRIBUTES | self.private_attributes | frozenset(self.relations)


def strip_storage_attributes(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in item.items() if k not in STORAGE_ATTRIBUTES}


def embedded(attribute: str, default: Any = None) -> RelationResolver:
    """Relation stored as an attribute of the item itself."""
    def resolve(dal: DynamoDBHandler, record: Dict[str, Any]) -> Any:
        value = record.get(attribute)
        return default if value is None else value
    return resolve


def referenced_one(entity_type: EntityType, id_attribute: str) -> RelationResolver:
    """Relation to one item whose id is stored on the record."""
    def resolve(dal: DynamoDBHandler, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        related_id = record.get(id_attribute)
        if not related_id:
            return None
        related = dal.get_item(entity_key(entity_type, related_id))
        return strip_storage_attributes(related) if related else None
    return resolve


def referenced_many(entity_type: EntityType, ids_attribute: str) -> RelationResolver:
    """Relation to the items whose ids are listed on the record."""
    def resolve(dal: DynamoDBHandler, record: Dict[str, Any]) -> list:
        related_ids = record.get(ids_attribute) or []
        related = dal.batch_get_items([entity_key(entity_type, related_id) for related_id in related_ids])
        return [strip_storage_attributes(item) for item in related]
    return resolve


def indexed_children(parent_type: EntityType, private_attributes: Iterable[str] = ()) -> RelationResolver:
    """Relation to the items grouped under the record in the GSI1 index."""
    hidden = frozenset(private_attributes)

    def resolve(dal: DynamoDBHandler, record: Dict[str, Any]) -> list:
        children = dal.query_index(partition_value(parent_type, record['id']))
        return [
            {k: v for k, v in strip_storage_attributes(child).items() if k not in hidden}
            for child in children
        ]
    return resolve


def project(
    dal: DynamoDBHandler,
    record: Dict[str, Any],
    projection: EntityProjection,
    config: Optional[FindConfig] = None,
    context: Optional[ErrorContext] = None,
) -> Dict[str, Any]:
    """
    Shape a stored record according to ``config``.

    ``id`` is always kept. Selected field names that the record does not have are
    ignored.

    Raises:
        InvalidDataError: If a requested relation does not exist on the entity
    """
    config = config or FindConfig()

    unknown = [name for name in config.relations if name not in projection.relations]
    if unknown:
        raise InvalidDataError(
            message=f"{projection.resource_type} has no relation(s): {', '.join(unknown)}",
            context=context,
        )

    hidden = projection.hidden_attributes
    visible = {k: v for k, v in record.items() if k not in hidden}
    if config.select is not None:
        wanted = set(config.select) | {'id'}
        visible = {k: v for k, v in visible.items() if k in wanted}

    for name in config.relations:
        visible[name] = projection.relations[name](dal, record)

    return visible
