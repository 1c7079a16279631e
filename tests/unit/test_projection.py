"""Tests for projecting rule lists into quads, entities and relations."""

from __future__ import annotations

import pytest

from scenerules.errors import EdgeEndpointError
from scenerules.graph.model import RelationKey
from scenerules.graph.projection import (
    make_scene_schema,
    project_graph,
    project_rules,
    rules_into_quads,
    transition_properties,
)
from scenerules.graph.terms import LiteralTerm, NamedNode, Quad
from scenerules.graph.vocabulary import (
    CONDITION,
    RDF_TYPE,
    RULE_CONDITION,
    SCENE_TYPE,
    TO,
    WEIGHT,
    XSD_DOUBLE,
    scene_iri,
)
from scenerules.models.rules import SceneRule, SceneRuleCondition


def _to_key(source: str, target: str) -> RelationKey:
    return RelationKey(scene_iri(source), scene_iri(target), TO)


class TestRulesIntoQuads:
    """Quad emission."""

    def test_empty_rules(self) -> None:
        assert rules_into_quads([]) == []

    def test_scene_nodes_come_first(self, sample_rules: list[SceneRule]) -> None:
        quads = rules_into_quads(sample_rules)

        type_quads = [q for q in quads if q.predicate.value == RDF_TYPE]
        assert quads[: len(type_quads)] == type_quads
        assert [q.subject for q in type_quads] == [
            NamedNode(scene_iri("start")),
            NamedNode(scene_iri("fight")),
            NamedNode(scene_iri("end")),
        ]
        assert all(q.object == NamedNode(SCENE_TYPE) for q in type_quads)

    def test_default_weight_is_omitted(self) -> None:
        quads = rules_into_quads([SceneRule(current_scene="a", result_scene="b")])

        assert not any(q.predicate.value == WEIGHT for q in quads)

    def test_weight_and_conditions_on_relation_quad(self) -> None:
        rule = SceneRule(
            current_scene="start",
            result_scene="end",
            weight=2,
            params=(SceneRuleCondition(name="hp", operator="LE", value=0),),
        )
        quads = rules_into_quads([rule])

        edge = Quad(NamedNode(scene_iri("start")), NamedNode(TO), NamedNode(scene_iri("end")))
        assert edge in quads
        assert Quad(edge, NamedNode(WEIGHT), LiteralTerm("2", XSD_DOUBLE)) in quads
        assert Quad(edge, NamedNode(CONDITION), LiteralTerm("hp <= 0", RULE_CONDITION)) in quads

    def test_idempotent(self, sample_rules: list[SceneRule]) -> None:
        assert rules_into_quads(sample_rules) == rules_into_quads(sample_rules)

    def test_self_loop(self) -> None:
        quads = rules_into_quads([SceneRule(current_scene="loop", result_scene="loop")])

        type_quads = [q for q in quads if q.predicate.value == RDF_TYPE]
        assert len(type_quads) == 1


class TestProjectGraph:
    """Folding quads into entities and relations."""

    def test_projects_entities_and_relations(self, sample_rules: list[SceneRule]) -> None:
        graph = project_rules(sample_rules)

        assert graph.classes == [SCENE_TYPE]
        assert list(graph.entities) == [scene_iri("start"), scene_iri("fight"), scene_iri("end")]
        assert list(graph.relations) == [
            _to_key("start", "fight"),
            _to_key("fight", "end"),
            _to_key("start", "end"),
        ]
        assert graph.entities[scene_iri("start")].types == (SCENE_TYPE,)

    def test_relation_properties(self, sample_rules: list[SceneRule]) -> None:
        graph = project_rules(sample_rules)

        fight_end = graph.relations[_to_key("fight", "end")]
        assert fight_end.values(WEIGHT) == (LiteralTerm("2", XSD_DOUBLE),)
        assert fight_end.values(CONDITION) == (LiteralTerm("hp <= 0", RULE_CONDITION),)

        start_end = graph.relations[_to_key("start", "end")]
        assert start_end.values(WEIGHT) == (LiteralTerm("0.5", XSD_DOUBLE),)
        assert len(start_end.values(CONDITION)) == 2

        start_fight = graph.relations[_to_key("start", "fight")]
        assert start_fight.properties == {}

    def test_relation_before_target_node(self) -> None:
        quads = [
            Quad(NamedNode("urn:a"), NamedNode(RDF_TYPE), NamedNode(SCENE_TYPE)),
            Quad(NamedNode("urn:a"), NamedNode(TO), NamedNode("urn:b")),
        ]

        with pytest.raises(EdgeEndpointError, match="target not found") as exc_info:
            project_graph(quads)

        assert exc_info.value.missing == "target"

    def test_relation_without_any_node(self) -> None:
        quads = [Quad(NamedNode("urn:a"), NamedNode(TO), NamedNode("urn:b"))]

        with pytest.raises(EdgeEndpointError) as exc_info:
            project_graph(quads)

        assert exc_info.value.missing == "both"

    def test_duplicate_rules_merge_into_one_relation(self) -> None:
        rules = [
            SceneRule(
                current_scene="a",
                result_scene="b",
                params=(SceneRuleCondition(name="hp", operator="GT", value=1),),
            ),
            SceneRule(
                current_scene="a",
                result_scene="b",
                params=(SceneRuleCondition(name="mp", operator="GT", value=1),),
            ),
        ]
        graph = project_rules(rules)

        assert len(graph.relations) == 1
        relation = graph.relations[_to_key("a", "b")]
        assert [c.value for c in relation.values(CONDITION)] == ["hp > 1", "mp > 1"]

    def test_entities_of_type(self, sample_rules: list[SceneRule]) -> None:
        quads = [
            *make_scene_schema(),
            *rules_into_quads(sample_rules),
            Quad(NamedNode("urn:other"), NamedNode(RDF_TYPE), NamedNode("urn:Thing")),
        ]
        graph = project_graph(quads)

        assert len(graph.entities_of_type(SCENE_TYPE)) == 3
        assert [e.id for e in graph.entities_of_type("urn:Thing")] == ["urn:other"]


class TestTransitionProperties:
    def test_default_is_empty(self) -> None:
        assert transition_properties() == {}

    def test_weight_and_conditions(self) -> None:
        condition = LiteralTerm("hp <= 0", RULE_CONDITION)
        props = transition_properties(3, [condition])

        assert props == {
            WEIGHT: (LiteralTerm("3", XSD_DOUBLE),),
            CONDITION: (condition,),
        }
