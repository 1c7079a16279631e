"""Editing permissions and property shapes for the scene graph.

Only scenes may be created, renamed, edited or deleted, and only ``to``
relations may connect them. A ``to`` relation carries an optional ``weight``
(``xsd:double``) and any number of ``condition`` literals.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from scenerules.graph.model import EntityData
from scenerules.graph.vocabulary import (
    APP_NAMESPACE,
    CONDITION,
    RULE_CONDITION,
    SCENE_TYPE,
    TO,
    WEIGHT,
    XSD_DOUBLE,
    scene_iri,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from scenerules.graph.model import RelationData


@dataclass(frozen=True)
class EntityPermissions:
    can_change_iri: bool
    can_edit: bool
    can_delete: bool


@dataclass(frozen=True)
class RelationPermissions:
    can_change_type: bool
    can_edit: bool
    can_delete: bool


@dataclass(frozen=True)
class ConnectionTarget:
    """Which targets and link types a connection from a source may use."""

    target_types: frozenset[str]
    in_links: tuple[str, ...]
    out_links: tuple[str, ...]


@dataclass(frozen=True)
class PropertyShape:
    term_type: Literal["Literal", "NamedNode"]
    datatype: str | None = None


class SceneMetadataProvider:
    """Answers what the author is allowed to do with scenes and transitions."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def can_modify_entity(self, entity: EntityData) -> EntityPermissions:
        is_scene = SCENE_TYPE in entity.types
        return EntityPermissions(can_change_iri=is_scene, can_edit=is_scene, can_delete=is_scene)

    def can_modify_relation(self, relation: RelationData) -> RelationPermissions:
        is_transition = relation.link_type_id == TO
        return RelationPermissions(
            can_change_type=is_transition,
            can_edit=is_transition,
            can_delete=is_transition,
        )

    def filter_constructible_types(self, types: Iterable[str]) -> set[str]:
        return {t for t in types if t == SCENE_TYPE}

    def create_entity(self, type_iri: str = SCENE_TYPE) -> EntityData:
        """New entity with a random ``sceneNNNNN`` id."""
        suffix = str(int(100000 * (1 + self._rng.random())))[1:]
        local_id = f"scene{suffix}"
        if type_iri == SCENE_TYPE:
            iri = scene_iri(local_id)
        else:
            iri = f"{APP_NAMESPACE}entity:{local_id}"
        return EntityData(id=iri, types=(type_iri,))

    def can_connect(
        self,
        source: EntityData,
        target: EntityData | None = None,
        link_type: str | None = None,
    ) -> list[ConnectionTarget]:
        if (
            SCENE_TYPE in source.types
            and (target is None or SCENE_TYPE in target.types)
            and (link_type is None or link_type == TO)
        ):
            return [
                ConnectionTarget(
                    target_types=frozenset({SCENE_TYPE}),
                    in_links=(TO,),
                    out_links=(TO,),
                )
            ]
        return []

    def relation_shape(self, link_type: str) -> dict[str, PropertyShape]:
        if link_type != TO:
            return {}
        return {
            WEIGHT: PropertyShape("Literal", XSD_DOUBLE),
            CONDITION: PropertyShape("Literal", RULE_CONDITION),
        }
