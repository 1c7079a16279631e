"""In-memory diagram model: the live graph the editor displays.

Elements and links come in two explicit variants, told apart by ``kind``:

- a single entity / relation (``EntityElement``, ``RelationLink``)
- a group of several entities / relations collapsed into one shape
  (``EntityGroup``, ``RelationGroup``)

Edits to the model are plain method calls. :meth:`DiagramModel.transaction`
wraps a series of them into one undoable step; on error the model is rolled
back to the state it had when the transaction started.
"""

from __future__ import annotations

import copy
import itertools
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from scenerules.graph.vocabulary import SCENE_TYPE
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from scenerules.graph.model import EntityData, RelationData, RelationKey
    from scenerules.graph.projection import ProjectedGraph

log = get_logger(__name__)

Position = tuple[float, float]


@dataclass
class EntityElement:
    id: str
    data: EntityData
    position: Position = (0.0, 0.0)
    kind: Literal["entity"] = "entity"

    @property
    def iris(self) -> list[str]:
        return [self.data.id]


@dataclass
class EntityGroup:
    id: str
    items: list[EntityData]
    position: Position = (0.0, 0.0)
    kind: Literal["entityGroup"] = "entityGroup"

    @property
    def iris(self) -> list[str]:
        return [item.id for item in self.items]


Element = EntityElement | EntityGroup


@dataclass
class RelationLink:
    id: str
    source_element: str
    target_element: str
    data: RelationData
    kind: Literal["relation"] = "relation"

    @property
    def relations(self) -> list[RelationData]:
        return [self.data]


@dataclass
class RelationGroup:
    id: str
    source_element: str
    target_element: str
    items: list[RelationData]
    kind: Literal["relationGroup"] = "relationGroup"

    @property
    def relations(self) -> list[RelationData]:
        return list(self.items)


Link = RelationLink | RelationGroup


@dataclass
class Transaction:
    """Snapshot taken when a transaction starts; one step of undo history."""

    title: str
    elements: dict[str, Element]
    links: dict[str, Link]
    undo_actions: list[Callable[[], None]] = field(default_factory=list)

    def on_undo(self, action: Callable[[], None]) -> None:
        """Register state outside the diagram to restore on undo."""
        self.undo_actions.append(action)


@dataclass
class DiagramModel:
    """Elements and links currently on the canvas, plus undo history."""

    elements: dict[str, Element] = field(default_factory=dict)
    links: dict[str, Link] = field(default_factory=dict)
    _history: list[Transaction] = field(default_factory=list, repr=False)
    _ids: Iterator[int] = field(default_factory=itertools.count, repr=False)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_element(self, iri: str) -> Element | None:
        """Element (single or group) that displays the entity *iri*."""
        for element in self.elements.values():
            if iri in element.iris:
                return element
        return None

    def find_entity(self, iri: str) -> EntityData | None:
        element = self.find_element(iri)
        if element is None:
            return None
        if element.kind == "entity":
            return element.data
        return next(item for item in element.items if item.id == iri)

    def find_link(self, key: RelationKey) -> Link | None:
        for link in self.links.values():
            if any(relation.key == key for relation in link.relations):
                return link
        return None

    def find_relation(self, key: RelationKey) -> RelationData | None:
        link = self.find_link(key)
        if link is None:
            return None
        return next(relation for relation in link.relations if relation.key == key)

    def entities(self) -> list[EntityData]:
        result: list[EntityData] = []
        for element in self.elements.values():
            if element.kind == "entity":
                result.append(element.data)
            else:
                result.extend(element.items)
        return result

    def relations(self) -> list[RelationData]:
        return [relation for link in self.links.values() for relation in link.relations]

    def positions(self) -> dict[str, Position]:
        """Position of every single entity element by IRI."""
        return {
            element.data.id: element.position
            for element in self.elements.values()
            if element.kind == "entity"
        }

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def create_element(self, data: EntityData, position: Position = (0.0, 0.0)) -> EntityElement:
        element = EntityElement(self._next_id("element"), data, position)
        self.elements[element.id] = element
        return element

    def create_entity_group(
        self, items: Iterable[EntityData], position: Position = (0.0, 0.0)
    ) -> EntityGroup:
        group = EntityGroup(self._next_id("group"), list(items), position)
        self.elements[group.id] = group
        return group

    def _endpoint_elements(self, relation: RelationData) -> tuple[str, str]:
        source = self.find_element(relation.source_id)
        target = self.find_element(relation.target_id)
        if source is None or target is None:
            msg = f"No element on the diagram for {relation.source_id} -> {relation.target_id}"
            raise ValueError(msg)
        return source.id, target.id

    def create_link(self, data: RelationData) -> RelationLink:
        source, target = self._endpoint_elements(data)
        link = RelationLink(self._next_id("link"), source, target, data)
        self.links[link.id] = link
        return link

    def create_relation_group(self, items: Iterable[RelationData]) -> RelationGroup:
        relations = list(items)
        if not relations:
            raise ValueError("Relation group needs at least one relation")
        source, target = self._endpoint_elements(relations[0])
        group = RelationGroup(self._next_id("link"), source, target, relations)
        self.links[group.id] = group
        return group

    def load_projection(
        self,
        graph: ProjectedGraph,
        positions: Mapping[str, Position] | None = None,
    ) -> None:
        """Replace the diagram content with a projected graph.

        Scenes keep the position given in *positions* for their IRI.
        History is cleared.
        """
        positions = positions or {}
        self.elements.clear()
        self.links.clear()
        self._history.clear()
        for entity in graph.entities_of_type(SCENE_TYPE):
            self.create_element(entity, positions.get(entity.id, (0.0, 0.0)))
        for relation in graph.relations.values():
            self.create_link(relation)
        log.debug("diagram_loaded", elements=len(self.elements), links=len(self.links))

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def change_entity_data(self, iri: str, data: EntityData) -> None:
        """Replace the data of entity *iri*; relations follow an IRI change."""
        for element in self.elements.values():
            if element.kind == "entity":
                if element.data.id == iri:
                    element.data = data
            else:
                element.items = [data if item.id == iri else item for item in element.items]

        if data.id != iri:
            for link in self.links.values():
                if link.kind == "relation":
                    link.data = _rename_endpoint(link.data, iri, data.id)
                else:
                    link.items = [_rename_endpoint(item, iri, data.id) for item in link.items]

    def change_relation_data(self, before: RelationData, data: RelationData) -> None:
        for link in self.links.values():
            if link.kind == "relation":
                if link.data.key == before.key:
                    link.data = data
            else:
                link.items = [data if item.key == before.key else item for item in link.items]

    def set_entity_group_items(self, group_id: str, items: Iterable[EntityData]) -> None:
        group = self.elements[group_id]
        if group.kind != "entityGroup":
            msg = f"Element {group_id} is not an entity group"
            raise TypeError(msg)
        group.items = list(items)

    def set_relation_group_items(self, group_id: str, items: Iterable[RelationData]) -> None:
        group = self.links[group_id]
        if group.kind != "relationGroup":
            msg = f"Link {group_id} is not a relation group"
            raise TypeError(msg)
        group.items = list(items)

    def remove_link(self, link_id: str) -> None:
        del self.links[link_id]

    def remove_element(self, element_id: str) -> None:
        """Remove an element together with every link attached to it."""
        del self.elements[element_id]
        for link_id in [
            link.id
            for link in self.links.values()
            if element_id in (link.source_element, link.target_element)
        ]:
            del self.links[link_id]

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, title: str) -> Iterator[Transaction]:
        """Group all edits made inside the block into one undoable step.

        Args:
            title: Label of the step in the history.

        Yields:
            The transaction, for registering extra undo actions. On
            exception the model is restored and the error re-raised.
        """
        tx = Transaction(title, copy.deepcopy(self.elements), copy.deepcopy(self.links))
        try:
            yield tx
        except Exception:
            self.elements = tx.elements
            self.links = tx.links
            raise
        self._history.append(tx)

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def undo(self) -> str | None:
        """Revert the latest transaction. Returns its title, or None."""
        if not self._history:
            return None
        entry = self._history.pop()
        self.elements = entry.elements
        self.links = entry.links
        for action in reversed(entry.undo_actions):
            action()
        return entry.title

    def to_dict(self) -> dict[str, Any]:
        """Plain summary of the diagram, for display and debugging."""
        return {
            "entities": [entity.id for entity in self.entities()],
            "relations": [
                {"source": r.source_id, "target": r.target_id, "type": r.link_type_id}
                for r in self.relations()
            ],
        }


def _rename_endpoint(relation: RelationData, old_iri: str, new_iri: str) -> RelationData:
    if old_iri not in (relation.source_id, relation.target_id):
        return relation
    return relation.with_endpoints(
        new_iri if relation.source_id == old_iri else relation.source_id,
        new_iri if relation.target_id == old_iri else relation.target_id,
    )
