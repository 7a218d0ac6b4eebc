"""Explicit relationship metadata and the query builder that consumes it.

Every mapped relationship is flattened into a ``Relation`` record: its
alias, direction (belongs-to or has-many), the foreign key that implements
it and the ordering of collection results. Queries across relations are
built from these records with ``select()`` rather than by walking ORM
attributes, so the alias names here are the contract callers rely on
(``AuditLog.user``, ``QuestionOption.selections``, ...).
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import Select, select
from sqlalchemy.orm import DeclarativeBase, Session, configure_mappers
from sqlalchemy.orm.interfaces import MANYTOONE, ONETOMANY

from survey_data.logging_config import get_logger

logger = get_logger(__name__)


class RelationKind(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"


@dataclass(frozen=True)
class Relation:
    """One direction of a foreign-key relationship.

    Attributes:
        name: Alias the relation is exposed under
        kind: belongs_to (this row holds the key) or has_many (inverse view)
        source: Entity declaring the relation
        target: Entity the relation resolves to
        foreign_key: Attribute holding the key, on ``source`` for
            belongs_to and on ``target`` for has_many
        required: For belongs_to, whether the key column is NOT NULL
        order_by: Target attributes collections are sorted by
    """
    name: str
    kind: RelationKind
    source: str
    target: str
    foreign_key: str
    required: bool = False
    order_by: Tuple[str, ...] = ()


class AssociationMap(Mapping[str, Tuple[Relation, ...]]):
    """Read-only mapping of entity name to its relations."""

    def __init__(
        self,
        relations: Mapping[str, Sequence[Relation]],
        classes: Mapping[str, type],
    ):
        self._relations = MappingProxyType(
            {name: tuple(rels) for name, rels in relations.items()}
        )
        self._classes = MappingProxyType(dict(classes))

    def __getitem__(self, entity: str) -> Tuple[Relation, ...]:
        return self._relations[entity]

    def __iter__(self) -> Iterator[str]:
        return iter(self._relations)

    def __len__(self) -> int:
        return len(self._relations)

    def relation(self, entity: str, name: str) -> Relation:
        for relation in self._relations.get(entity, ()):
            if relation.name == name:
                return relation
        raise KeyError(f"{entity} has no relation {name!r}")

    def belongs_to(self, entity: str) -> Tuple[Relation, ...]:
        return tuple(r for r in self[entity] if r.kind is RelationKind.BELONGS_TO)

    def has_many(self, entity: str) -> Tuple[Relation, ...]:
        return tuple(r for r in self[entity] if r.kind is RelationKind.HAS_MANY)

    def model(self, entity: str) -> type:
        return self._classes[entity]


def _relation_from_property(entity: str, prop) -> Optional[Relation]:
    target = prop.mapper.class_.__name__

    if prop.direction is MANYTOONE:
        column = next(iter(prop.local_columns))
        return Relation(
            name=prop.key,
            kind=RelationKind.BELONGS_TO,
            source=entity,
            target=target,
            foreign_key=column.key,
            required=not column.nullable,
        )

    if prop.direction is ONETOMANY:
        remote = next(iter(prop.remote_side))
        order_by: Tuple[str, ...] = ()
        if prop.order_by:
            order_by = tuple(col.key for col in prop.order_by)
        return Relation(
            name=prop.key,
            kind=RelationKind.HAS_MANY,
            source=entity,
            target=target,
            foreign_key=remote.key,
            order_by=order_by,
        )

    # Many-to-many relations are not part of this model
    return None


def build_association_map(base: type[DeclarativeBase]) -> AssociationMap:
    """Flatten every mapped relationship on ``base`` into ``Relation`` records."""
    configure_mappers()
    relations: Dict[str, List[Relation]] = {}
    classes: Dict[str, type] = {}

    for mapper in base.registry.mappers:
        entity = mapper.class_.__name__
        classes[entity] = mapper.class_
        relations[entity] = []
        for prop in mapper.relationships:
            relation = _relation_from_property(entity, prop)
            if relation is not None:
                relations[entity].append(relation)

    logger.debug(
        f"Association map built: "
        f"{sum(len(r) for r in relations.values())} relations over {len(classes)} entities"
    )
    return AssociationMap(relations, classes)


@lru_cache
def get_association_map() -> AssociationMap:
    """Get the process-wide association map for the survey data models."""
    from survey_data.models import Base

    return build_association_map(Base)


def related_select(
    associations: AssociationMap,
    relation: Relation,
    owner_id: int,
) -> Select:
    """Build the SELECT that resolves ``relation`` for the row ``owner_id``.

    Belongs-to relations select the single parent referenced by the owner's
    foreign key. Has-many relations select the children whose foreign key
    points at the owner, in the relation's declared order and then by id.
    """
    source = associations.model(relation.source)
    target = associations.model(relation.target)

    if relation.kind is RelationKind.BELONGS_TO:
        parent_key = (
            select(getattr(source, relation.foreign_key))
            .where(source.id == owner_id)
            .scalar_subquery()
        )
        return select(target).where(target.id == parent_key)

    ordering = [getattr(target, name) for name in relation.order_by]
    if "id" not in relation.order_by:
        ordering.append(target.id)
    return (
        select(target)
        .where(getattr(target, relation.foreign_key) == owner_id)
        .order_by(*ordering)
    )


def load_related(
    db: Session,
    entity: str,
    owner_id: int,
    name: str,
    associations: Optional[AssociationMap] = None,
) -> Any:
    """Resolve a named relation of one row.

    Args:
        db: Database session
        entity: Entity name of the owning row (e.g. "AuditLog")
        owner_id: Primary key of the owning row
        name: Relation alias (e.g. "user", "selections")
        associations: Map to resolve against (defaults to the model map)

    Returns:
        The parent row (or None) for belongs-to relations, a list of rows
        for has-many relations.
    """
    associations = associations or get_association_map()
    relation = associations.relation(entity, name)
    statement = related_select(associations, relation, owner_id)

    if relation.kind is RelationKind.BELONGS_TO:
        return db.execute(statement).scalar_one_or_none()
    return list(db.execute(statement).scalars())
