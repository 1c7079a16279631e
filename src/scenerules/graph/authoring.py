"""Authoring delta: pending edits made in the editor since the last save.

Events are keyed by the *original* identity of what they touch: entity
events by the entity IRI before any rename, relation events by the
:class:`~scenerules.graph.model.RelationKey` the relation had before it was
changed. There is at most one event per key; the builder methods collapse
repeated edits the way the editor does:

- add then change: still an add, with the new data
- add then delete: no event at all
- change then change: one change from the original ``before``
- change then delete: a delete of the original ``before``

The state is immutable; every builder method returns a new state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, StrictFloat, StrictInt, ValidationError

from scenerules.errors import MalformedInputJson
from scenerules.graph.model import EntityData, RelationData, RelationKey
from scenerules.graph.projection import transition_properties
from scenerules.graph.terms import LiteralTerm
from scenerules.graph.vocabulary import RULE_CONDITION, SCENE_TYPE, TO, scene_iri
from scenerules.models.rules import DEFAULT_WEIGHT

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from scenerules.graph.projection import ProjectedGraph


@dataclass(frozen=True)
class EntityAdd:
    data: EntityData
    kind: Literal["entityAdd"] = "entityAdd"


@dataclass(frozen=True)
class EntityChange:
    """Entity data changed; ``new_iri`` is set when the entity was renamed."""

    before: EntityData
    data: EntityData
    new_iri: str | None = None
    kind: Literal["entityChange"] = "entityChange"


@dataclass(frozen=True)
class EntityDelete:
    data: EntityData
    kind: Literal["entityDelete"] = "entityDelete"


@dataclass(frozen=True)
class RelationAdd:
    data: RelationData
    kind: Literal["relationAdd"] = "relationAdd"


@dataclass(frozen=True)
class RelationChange:
    before: RelationData
    data: RelationData
    kind: Literal["relationChange"] = "relationChange"


@dataclass(frozen=True)
class RelationDelete:
    data: RelationData
    kind: Literal["relationDelete"] = "relationDelete"


EntityEvent = EntityAdd | EntityChange | EntityDelete
RelationEvent = RelationAdd | RelationChange | RelationDelete


@dataclass(frozen=True)
class AuthoringState:
    """Pending entity and relation events.

    Attributes:
        elements: Entity events by original entity IRI.
        links: Relation events by original relation key.
    """

    elements: Mapping[str, EntityEvent] = field(default_factory=dict)
    links: Mapping[RelationKey, RelationEvent] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> AuthoringState:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.elements and not self.links

    # -- Queries ---------------------------------------------------------------

    def is_deleted_entity(self, iri: str) -> bool:
        return isinstance(self.elements.get(iri), EntityDelete)

    def is_new_entity(self, iri: str) -> bool:
        return isinstance(self.elements.get(iri), EntityAdd)

    def is_deleted_relation(self, key: RelationKey) -> bool:
        """A relation is deleted directly or through a deleted endpoint."""
        return (
            isinstance(self.links.get(key), RelationDelete)
            or self.is_deleted_entity(key.source_id)
            or self.is_deleted_entity(key.target_id)
        )

    def renames(self) -> dict[str, str]:
        """Original IRI -> new IRI for every renamed entity."""
        return {
            iri: event.new_iri
            for iri, event in self.elements.items()
            if isinstance(event, EntityChange) and event.new_iri is not None
        }

    def added_relations(self) -> Iterator[RelationData]:
        for event in self.links.values():
            if isinstance(event, RelationAdd):
                yield event.data

    def changed_relation(self, key: RelationKey) -> RelationData | None:
        """New data of the relation originally keyed *key*, if it changed."""
        event = self.links.get(key)
        if isinstance(event, RelationChange):
            return event.data
        return None

    def original_iri(self, iri: str) -> str:
        """Map a current entity IRI back to the key its events are stored under."""
        if iri in self.elements:
            return iri
        for original, new_iri in self.renames().items():
            if new_iri == iri:
                return original
        return iri

    # -- Builders --------------------------------------------------------------

    def add_entity(self, data: EntityData) -> AuthoringState:
        elements = dict(self.elements)
        elements[data.id] = EntityAdd(data)
        return replace(self, elements=elements)

    def change_entity(
        self,
        before: EntityData,
        data: EntityData,
        new_iri: str | None = None,
    ) -> AuthoringState:
        key = self.original_iri(before.id)
        existing = self.elements.get(key)
        elements = dict(self.elements)

        if isinstance(existing, EntityAdd):
            target_iri = new_iri or data.id
            del elements[key]
            elements[target_iri] = EntityAdd(data.with_id(target_iri))
            state = replace(self, elements=elements)
            if target_iri != key:
                state = state._rekey_added_relations(key, target_iri)
            return state

        if isinstance(existing, EntityChange):
            original = existing.before
            effective_iri = new_iri if new_iri is not None else existing.new_iri
        else:
            original = before
            effective_iri = new_iri

        if effective_iri == original.id:
            effective_iri = None
        elements[key] = EntityChange(original, data, effective_iri)
        return replace(self, elements=elements)

    def delete_entity(self, data: EntityData) -> AuthoringState:
        key = self.original_iri(data.id)
        existing = self.elements.get(key)
        elements = dict(self.elements)

        if isinstance(existing, EntityAdd):
            del elements[key]
            links = {
                k: event
                for k, event in self.links.items()
                if key not in (k.source_id, k.target_id)
            }
            return replace(self, elements=elements, links=links)

        if isinstance(existing, EntityChange):
            elements[key] = EntityDelete(existing.before)
        else:
            elements[key] = EntityDelete(data)
        return replace(self, elements=elements)

    def add_relation(self, data: RelationData) -> AuthoringState:
        links = dict(self.links)
        existing = links.get(data.key)
        if isinstance(existing, RelationDelete):
            links[data.key] = RelationChange(existing.data, data)
        else:
            links[data.key] = RelationAdd(data)
        return replace(self, links=links)

    def change_relation(self, before: RelationData, data: RelationData) -> AuthoringState:
        links = dict(self.links)
        existing = links.get(before.key)

        if isinstance(existing, RelationAdd):
            del links[before.key]
            links[data.key] = RelationAdd(data)
        elif isinstance(existing, RelationChange):
            links[before.key] = RelationChange(existing.before, data)
        else:
            links[before.key] = RelationChange(before, data)
        return replace(self, links=links)

    def delete_relation(self, data: RelationData) -> AuthoringState:
        links = dict(self.links)
        existing = links.get(data.key)

        if isinstance(existing, RelationAdd):
            del links[data.key]
        elif isinstance(existing, RelationChange):
            links[data.key] = RelationDelete(existing.before)
        else:
            links[data.key] = RelationDelete(data)
        return replace(self, links=links)

    def _rekey_added_relations(self, old_iri: str, new_iri: str) -> AuthoringState:
        """Point relations added alongside a new entity at its new IRI."""
        links: dict[RelationKey, RelationEvent] = {}
        for key, event in self.links.items():
            if isinstance(event, RelationAdd) and old_iri in (key.source_id, key.target_id):
                moved = event.data.with_endpoints(
                    new_iri if key.source_id == old_iri else key.source_id,
                    new_iri if key.target_id == old_iri else key.target_id,
                )
                links[moved.key] = RelationAdd(moved)
            else:
                links[key] = event
        return replace(self, links=links)


# -----------------------------------------------------------------------------
# Delta files
# -----------------------------------------------------------------------------


class EntityEventSpec(BaseModel):
    """An entity event in a delta file, addressed by bare scene id."""

    type: Literal["add", "change", "delete"]
    scene: str = Field(min_length=1)
    new_scene: str | None = None


class RelationEventSpec(BaseModel):
    """A transition event in a delta file.

    ``conditions`` are raw condition expressions such as ``"hp <= 0"``; they
    are parsed when the delta is reconciled.
    """

    type: Literal["add", "change", "delete"]
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    weight: StrictInt | StrictFloat = DEFAULT_WEIGHT
    conditions: list[str] = Field(default_factory=list)


class AuthoringDeltaFile(BaseModel):
    entities: list[EntityEventSpec] = Field(default_factory=list)
    relations: list[RelationEventSpec] = Field(default_factory=list)


def load_authoring_delta(text: str, graph: ProjectedGraph) -> AuthoringState:
    """Build an authoring state from a JSON delta file.

    Events are applied in file order (entities first), so the usual
    collapsing rules apply. ``before`` data comes from *graph* when the
    entity or relation is present there.

    Raises:
        MalformedInputJson: If the content is not a valid delta document.
    """
    try:
        delta = AuthoringDeltaFile.model_validate_json(text)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise MalformedInputJson("invalid authoring delta", details=details) from e

    state = AuthoringState.empty()

    for entity in delta.entities:
        iri = scene_iri(entity.scene)
        current = graph.entities.get(iri) or EntityData(iri, (SCENE_TYPE,))
        if entity.type == "add":
            state = state.add_entity(current)
        elif entity.type == "delete":
            state = state.delete_entity(current)
        else:
            new_iri = scene_iri(entity.new_scene) if entity.new_scene else None
            data = current.with_id(new_iri) if new_iri else current
            state = state.change_entity(current, data, new_iri)

    for relation in delta.relations:
        data = RelationData(
            link_type_id=TO,
            source_id=scene_iri(relation.source),
            target_id=scene_iri(relation.target),
            properties=transition_properties(
                relation.weight,
                [LiteralTerm(text, RULE_CONDITION) for text in relation.conditions],
            ),
        )
        before = graph.relations.get(data.key, data)
        if relation.type == "add":
            state = state.add_relation(data)
        elif relation.type == "delete":
            state = state.delete_relation(before)
        else:
            state = state.change_relation(before, data)

    return state
