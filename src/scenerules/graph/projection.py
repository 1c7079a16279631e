"""Projection of a rule list into graph quads, entities and relations.

Each referenced scene becomes a ``Scene`` node; each rule becomes a ``to``
relation between two scene nodes. Relation properties are stated about the
relation quad:

- ``weight``: an ``xsd:double`` literal, omitted when the weight is 1;
- ``condition``: one ``RuleCondition`` literal per condition (all must hold).

Scene node identifiers depend only on the scene id, so projecting the same
rules twice yields identical output and the editor can match nodes across
save cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scenerules.errors import EdgeEndpointError
from scenerules.graph.conditions import serialize_condition
from scenerules.graph.model import EntityData, RelationData, RelationKey
from scenerules.graph.terms import LiteralTerm, NamedNode, Quad, Term, format_number
from scenerules.graph.vocabulary import (
    CONDITION,
    RDF_TYPE,
    RDFS_CLASS,
    SCENE_TYPE,
    TO,
    WEIGHT,
    XSD_DOUBLE,
    scene_iri,
)
from scenerules.models.rules import DEFAULT_WEIGHT, SceneRule, scene_ids
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = get_logger(__name__)


def make_scene_schema() -> list[Quad]:
    """Declare the scene type."""
    return [Quad(NamedNode(SCENE_TYPE), NamedNode(RDF_TYPE), NamedNode(RDFS_CLASS))]


def rules_into_quads(rules: Sequence[SceneRule]) -> list[Quad]:
    """Convert rules into scene node and transition quads.

    All scene node quads are emitted before any transition quad.
    """
    quads: list[Quad] = []

    type_predicate = NamedNode(RDF_TYPE)
    scene_type = NamedNode(SCENE_TYPE)

    scenes = scene_ids(rules)
    for scene in scenes:
        quads.append(Quad(NamedNode(scene_iri(scene)), type_predicate, scene_type))

    condition_predicate = NamedNode(CONDITION)
    to_predicate = NamedNode(TO)
    weight_predicate = NamedNode(WEIGHT)

    for rule in rules:
        rule_quad = Quad(
            NamedNode(scene_iri(rule.current_scene)),
            to_predicate,
            NamedNode(scene_iri(rule.result_scene)),
        )
        quads.append(rule_quad)
        if rule.weight != DEFAULT_WEIGHT:
            quads.append(
                Quad(rule_quad, weight_predicate, LiteralTerm(format_number(rule.weight), XSD_DOUBLE))
            )
        for param in rule.params:
            quads.append(Quad(rule_quad, condition_predicate, serialize_condition(param)))

    log.debug("rules_projected", rules=len(rules), scenes=len(scenes), quads=len(quads))
    return quads


@dataclass
class ProjectedGraph:
    """Entities and relations ready to be placed on a diagram.

    Attributes:
        classes: Type IRIs declared as classes by the schema.
        entities: Nodes by IRI, in emission order.
        relations: Relations by key, in emission order.
    """

    classes: list[str] = field(default_factory=list)
    entities: dict[str, EntityData] = field(default_factory=dict)
    relations: dict[RelationKey, RelationData] = field(default_factory=dict)

    def entities_of_type(self, type_iri: str) -> list[EntityData]:
        return [e for e in self.entities.values() if type_iri in e.types]


class _GraphBuilder:
    """Accumulates quads into mutable entity/relation records."""

    def __init__(self) -> None:
        self.classes: list[str] = []
        self.entity_types: dict[str, list[str]] = {}
        self.entity_properties: dict[str, dict[str, list[Term]]] = {}
        self.relation_properties: dict[RelationKey, dict[str, list[Term]]] = {}
        self.relation_counts: dict[RelationKey, int] = {}

    def add(self, quad: Quad) -> None:
        subject = quad.subject
        if isinstance(subject, Quad):
            key = self._add_relation(subject)
            _append_unique(self.relation_properties[key], quad.predicate.value, quad.object)
        elif quad.predicate.value == RDF_TYPE and isinstance(quad.object, NamedNode):
            if quad.object.value == RDFS_CLASS:
                if subject.value not in self.classes:
                    self.classes.append(subject.value)
            else:
                types = self.entity_types.setdefault(subject.value, [])
                self.entity_properties.setdefault(subject.value, {})
                if quad.object.value not in types:
                    types.append(quad.object.value)
        elif isinstance(quad.object, NamedNode):
            key = self._add_relation(quad)
            self.relation_counts[key] = self.relation_counts.get(key, 0) + 1
            if self.relation_counts[key] > 1:
                log.warning(
                    "duplicate_relation_merged",
                    source=key.source_id,
                    target=key.target_id,
                )
        else:
            props = self.entity_properties.setdefault(subject.value, {})
            self.entity_types.setdefault(subject.value, [])
            _append_unique(props, quad.predicate.value, quad.object)

    def _add_relation(self, quad: Quad) -> RelationKey:
        source = quad.subject
        target = quad.object
        if isinstance(source, Quad) or not isinstance(target, NamedNode):
            msg = f"Relation quads must connect two named nodes: {quad!r}"
            raise ValueError(msg)

        key = RelationKey(source.value, target.value, quad.predicate.value)
        if key not in self.relation_properties:
            has_source = source.value in self.entity_types
            has_target = target.value in self.entity_types
            if not (has_source and has_target):
                if not has_source and not has_target:
                    missing = "both"
                elif not has_source:
                    missing = "source"
                else:
                    missing = "target"
                raise EdgeEndpointError(quad.predicate.value, source.value, target.value, missing)
            self.relation_properties[key] = {}
        return key

    def build(self) -> ProjectedGraph:
        entities = {
            iri: EntityData(
                id=iri,
                types=tuple(types),
                properties={p: tuple(v) for p, v in self.entity_properties[iri].items()},
            )
            for iri, types in self.entity_types.items()
        }
        relations = {
            key: RelationData(
                link_type_id=key.link_type_id,
                source_id=key.source_id,
                target_id=key.target_id,
                properties={p: tuple(v) for p, v in props.items()},
            )
            for key, props in self.relation_properties.items()
        }
        return ProjectedGraph(classes=list(self.classes), entities=entities, relations=relations)


def _append_unique(props: dict[str, list[Term]], predicate: str, value: Term) -> None:
    values = props.setdefault(predicate, [])
    if value not in values:
        values.append(value)


def project_graph(quads: Iterable[Quad]) -> ProjectedGraph:
    """Fold quads into entities and relations.

    Raises:
        EdgeEndpointError: If a relation appears before both of its
            endpoint nodes.
    """
    builder = _GraphBuilder()
    for quad in quads:
        builder.add(quad)
    graph = builder.build()
    log.debug(
        "graph_projected",
        entities=len(graph.entities),
        relations=len(graph.relations),
    )
    return graph


def transition_properties(
    weight: int | float = DEFAULT_WEIGHT,
    conditions: Iterable[Term] = (),
) -> dict[str, tuple[Term, ...]]:
    """Property bag of a ``to`` relation, omitting the default weight."""
    props: dict[str, tuple[Term, ...]] = {}
    if weight != DEFAULT_WEIGHT:
        props[WEIGHT] = (LiteralTerm(format_number(weight), XSD_DOUBLE),)
    condition_values = tuple(conditions)
    if condition_values:
        props[CONDITION] = condition_values
    return props


def project_rules(rules: Sequence[SceneRule]) -> ProjectedGraph:
    """Project the scene schema and *rules* in one batch."""
    return project_graph([*make_scene_schema(), *rules_into_quads(rules)])
