"""Tests for the in-memory diagram model and its undo history."""

from __future__ import annotations

import pytest

from scenerules.graph.diagram import DiagramModel
from scenerules.graph.model import EntityData, RelationData
from scenerules.graph.projection import project_rules
from scenerules.graph.vocabulary import SCENE_TYPE, TO, scene_iri
from scenerules.models.rules import SceneRule


def _scene(scene_id: str) -> EntityData:
    return EntityData(scene_iri(scene_id), (SCENE_TYPE,))


def _transition(source: str, target: str) -> RelationData:
    return RelationData(TO, scene_iri(source), scene_iri(target))


@pytest.fixture
def model(sample_rules: list[SceneRule]) -> DiagramModel:
    model = DiagramModel()
    model.load_projection(project_rules(sample_rules))
    return model


class TestLoadProjection:
    def test_one_element_per_scene(self, model: DiagramModel) -> None:
        assert [e.id for e in model.entities()] == [
            scene_iri("start"),
            scene_iri("fight"),
            scene_iri("end"),
        ]
        assert len(model.relations()) == 3

    def test_keeps_positions(self, sample_rules: list[SceneRule]) -> None:
        model = DiagramModel()
        model.load_projection(
            project_rules(sample_rules), positions={scene_iri("fight"): (10.0, 20.0)}
        )

        assert model.positions()[scene_iri("fight")] == (10.0, 20.0)
        assert model.positions()[scene_iri("start")] == (0.0, 0.0)

    def test_clears_history(self, model: DiagramModel, sample_rules: list[SceneRule]) -> None:
        with model.transaction("edit"):
            model.create_element(_scene("cave"))

        model.load_projection(project_rules(sample_rules))

        assert not model.can_undo

    def test_to_dict(self, model: DiagramModel) -> None:
        summary = model.to_dict()

        assert summary["entities"][0] == scene_iri("start")
        assert summary["relations"][0] == {
            "source": scene_iri("start"),
            "target": scene_iri("fight"),
            "type": TO,
        }


class TestLookup:
    def test_find_entity_in_group(self) -> None:
        model = DiagramModel()
        group = model.create_entity_group([_scene("a"), _scene("b")])

        assert model.find_element(scene_iri("b")) is group
        assert model.find_entity(scene_iri("b")) == _scene("b")
        assert model.find_entity(scene_iri("missing")) is None

    def test_find_relation_in_group(self) -> None:
        model = DiagramModel()
        model.create_element(_scene("a"))
        model.create_element(_scene("b"))
        group = model.create_relation_group([_transition("a", "b")])

        assert model.find_link(_transition("a", "b").key) is group
        assert model.find_relation(_transition("a", "b").key) == _transition("a", "b")

    def test_link_needs_endpoint_elements(self) -> None:
        model = DiagramModel()
        model.create_element(_scene("a"))

        with pytest.raises(ValueError, match="No element on the diagram"):
            model.create_link(_transition("a", "b"))

    def test_empty_relation_group(self) -> None:
        with pytest.raises(ValueError, match="at least one relation"):
            DiagramModel().create_relation_group([])


class TestEdits:
    def test_rename_moves_relations(self, model: DiagramModel) -> None:
        model.change_entity_data(scene_iri("start"), _scene("intro"))

        assert model.find_entity(scene_iri("start")) is None
        assert model.find_entity(scene_iri("intro")) == _scene("intro")
        sources = {r.source_id for r in model.relations()}
        assert scene_iri("start") not in sources
        assert scene_iri("intro") in sources

    def test_remove_element_removes_attached_links(self, model: DiagramModel) -> None:
        element = model.find_element(scene_iri("end"))
        assert element is not None

        model.remove_element(element.id)

        assert [(r.source_id, r.target_id) for r in model.relations()] == [
            (scene_iri("start"), scene_iri("fight"))
        ]

    def test_group_items_require_group(self, model: DiagramModel) -> None:
        element = model.find_element(scene_iri("start"))
        assert element is not None

        with pytest.raises(TypeError, match="not an entity group"):
            model.set_entity_group_items(element.id, [])


class TestTransactions:
    def test_undo_restores_state(self, model: DiagramModel) -> None:
        before = model.to_dict()
        with model.transaction("Add cave"):
            model.create_element(_scene("cave"))

        assert model.can_undo
        assert model.undo() == "Add cave"
        assert model.to_dict() == before
        assert not model.can_undo

    def test_undo_with_empty_history(self) -> None:
        assert DiagramModel().undo() is None

    def test_error_rolls_back(self, model: DiagramModel) -> None:
        before = model.to_dict()

        with pytest.raises(RuntimeError), model.transaction("broken"):
            model.create_element(_scene("cave"))
            raise RuntimeError("boom")

        assert model.to_dict() == before
        assert not model.can_undo

    def test_undo_runs_registered_actions(self, model: DiagramModel) -> None:
        calls: list[str] = []
        with model.transaction("edit") as tx:
            tx.on_undo(lambda: calls.append("first"))
            tx.on_undo(lambda: calls.append("second"))

        model.undo()

        assert calls == ["second", "first"]
