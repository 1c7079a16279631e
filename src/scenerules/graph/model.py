"""Entity and relation data exchanged with the diagram editor.

Relations are identified by a value-comparable :class:`RelationKey`, so an
edited relation still matches the rule it was projected from even after its
properties change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from scenerules.graph.terms import Term

# predicate IRI -> values
PropertyMap = dict[str, tuple["Term", ...]]


class RelationKey(NamedTuple):
    """Composite identity of a relation."""

    source_id: str
    target_id: str
    link_type_id: str


@dataclass(frozen=True)
class EntityData:
    """A typed node with a property bag."""

    id: str
    types: tuple[str, ...] = ()
    properties: PropertyMap = field(default_factory=dict)

    def with_id(self, new_id: str) -> EntityData:
        return replace(self, id=new_id)


@dataclass(frozen=True)
class RelationData:
    """A typed relation between two nodes with a property bag."""

    link_type_id: str
    source_id: str
    target_id: str
    properties: PropertyMap = field(default_factory=dict)

    @property
    def key(self) -> RelationKey:
        return RelationKey(self.source_id, self.target_id, self.link_type_id)

    def values(self, predicate: str) -> tuple[Term, ...]:
        """Property values for *predicate* (empty when absent)."""
        return self.properties.get(predicate, ())

    def with_endpoints(self, source_id: str, target_id: str) -> RelationData:
        return replace(self, source_id=source_id, target_id=target_id)
