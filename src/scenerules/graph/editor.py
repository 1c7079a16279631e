"""Authoring-mode editor over a diagram model.

Edits to scenes and transitions that already existed when the diagram was
loaded are only recorded in the authoring state; the diagram keeps showing
the committed data until :func:`~scenerules.graph.commit.apply_authoring_state`
runs. Scenes and transitions created in this session are new anyway, so
edits to them are applied to the diagram right away.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from scenerules.errors import EditNotAllowed, NotOnDiagram
from scenerules.graph.authoring import AuthoringState, RelationAdd
from scenerules.graph.metadata import SceneMetadataProvider
from scenerules.graph.model import EntityData, RelationData, RelationKey
from scenerules.graph.projection import transition_properties
from scenerules.graph.vocabulary import SCENE_TYPE, TO, scene_iri
from scenerules.models.rules import DEFAULT_WEIGHT
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from scenerules.graph.diagram import DiagramModel, Position
    from scenerules.graph.terms import Term

log = get_logger(__name__)


class WorkspaceEditor:
    """Records scene and transition edits as authoring events."""

    def __init__(
        self,
        model: DiagramModel,
        metadata: SceneMetadataProvider | None = None,
    ) -> None:
        self.model = model
        self.metadata = metadata or SceneMetadataProvider()
        self._state = AuthoringState.empty()

    @property
    def authoring_state(self) -> AuthoringState:
        return self._state

    def set_authoring_state(self, state: AuthoringState) -> None:
        self._state = state

    # -------------------------------------------------------------------------
    # Scenes
    # -------------------------------------------------------------------------

    def _require_entity(self, iri: str) -> EntityData:
        entity = self.model.find_entity(iri)
        if entity is None:
            raise NotOnDiagram(iri)
        return entity

    def create_scene(
        self,
        scene_id: str | None = None,
        position: Position = (0.0, 0.0),
    ) -> EntityData:
        """Place a new scene on the diagram.

        Args:
            scene_id: Bare id; a random ``sceneNNNNN`` id is generated if None.
            position: Diagram coordinates of the new element.
        """
        if scene_id is None:
            data = self.metadata.create_entity(SCENE_TYPE)
        else:
            data = EntityData(scene_iri(scene_id), (SCENE_TYPE,))
        if self.model.find_element(data.id) is not None:
            raise EditNotAllowed("create a duplicate of scene", data.id)

        self.model.create_element(data, position)
        self._state = self._state.add_entity(data)
        log.debug("scene_created", iri=data.id)
        return data

    def rename_scene(self, iri: str, new_scene_id: str) -> EntityData:
        entity = self._require_entity(iri)
        if not self.metadata.can_modify_entity(entity).can_change_iri:
            raise EditNotAllowed("rename", iri)

        new_iri = scene_iri(new_scene_id)
        if new_iri != iri and self.model.find_element(new_iri) is not None:
            raise EditNotAllowed("rename onto existing scene", new_iri)

        data = entity.with_id(new_iri)
        if self._state.is_new_entity(iri):
            self.model.change_entity_data(iri, data)
        self._state = self._state.change_entity(entity, data, new_iri)
        log.debug("scene_renamed", iri=iri, new_iri=new_iri)
        return data

    def delete_scene(self, iri: str) -> None:
        entity = self._require_entity(iri)
        if not self.metadata.can_modify_entity(entity).can_delete:
            raise EditNotAllowed("delete", iri)

        if self._state.is_new_entity(iri):
            element = self.model.find_element(iri)
            if element is not None and element.kind == "entity":
                self.model.remove_element(element.id)
        self._state = self._state.delete_entity(entity)
        log.debug("scene_deleted", iri=iri)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require_relation(self, key: RelationKey) -> RelationData:
        relation = self.model.find_relation(key)
        if relation is None:
            raise NotOnDiagram(f"{key.source_id} -> {key.target_id}")
        return relation

    def connect(
        self,
        source_iri: str,
        target_iri: str,
        *,
        weight: int | float = DEFAULT_WEIGHT,
        conditions: Iterable[Term] = (),
    ) -> RelationData:
        """Draw a new transition between two scenes."""
        source = self._require_entity(source_iri)
        target = self._require_entity(target_iri)
        if not self.metadata.can_connect(source, target, TO):
            raise EditNotAllowed("connect", f"{source_iri} -> {target_iri}")

        data = RelationData(TO, source_iri, target_iri, transition_properties(weight, conditions))
        if self.model.find_link(data.key) is not None:
            raise EditNotAllowed("add a second transition", f"{source_iri} -> {target_iri}")

        self.model.create_link(data)
        self._state = self._state.add_relation(data)
        log.debug("transition_added", source=source_iri, target=target_iri)
        return data

    def edit_transition(
        self,
        key: RelationKey,
        *,
        weight: int | float = DEFAULT_WEIGHT,
        conditions: Iterable[Term] = (),
    ) -> RelationData:
        """Replace the weight and conditions of a transition."""
        before = self._require_relation(key)
        if not self.metadata.can_modify_relation(before).can_edit:
            raise EditNotAllowed("edit", f"{key.source_id} -> {key.target_id}")

        data = replace(before, properties=transition_properties(weight, conditions))
        if isinstance(self._state.links.get(key), RelationAdd):
            self.model.change_relation_data(before, data)
        self._state = self._state.change_relation(before, data)
        log.debug("transition_changed", source=key.source_id, target=key.target_id)
        return data

    def delete_transition(self, key: RelationKey) -> None:
        before = self._require_relation(key)
        if not self.metadata.can_modify_relation(before).can_delete:
            raise EditNotAllowed("delete", f"{key.source_id} -> {key.target_id}")

        if isinstance(self._state.links.get(key), RelationAdd):
            link = self.model.find_link(key)
            if link is not None and link.kind == "relation":
                self.model.remove_link(link.id)
        self._state = self._state.delete_relation(before)
        log.debug("transition_deleted", source=key.source_id, target=key.target_id)
