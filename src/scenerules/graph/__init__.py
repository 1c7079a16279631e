"""Graph package - projection of scene rules and reconciliation of edits.

Rule lists are projected into scene nodes and ``to`` relations for the
editor; pending edits recorded by the editor are folded back into a rule
list on save and then committed into the diagram.
"""

from scenerules.graph.authoring import (
    AuthoringState,
    EntityAdd,
    EntityChange,
    EntityDelete,
    RelationAdd,
    RelationChange,
    RelationDelete,
    load_authoring_delta,
)
from scenerules.graph.commit import apply_authoring_state
from scenerules.graph.conditions import (
    ConditionInput,
    ParsedCondition,
    deserialize_condition,
    parse_condition,
    serialize_condition,
    validate_condition,
)
from scenerules.graph.diagram import DiagramModel
from scenerules.graph.editor import WorkspaceEditor
from scenerules.graph.metadata import SceneMetadataProvider
from scenerules.graph.model import EntityData, RelationData, RelationKey
from scenerules.graph.projection import (
    ProjectedGraph,
    make_scene_schema,
    project_graph,
    project_rules,
    rules_into_quads,
)
from scenerules.graph.reconcile import reconcile_rules, rule_key

__all__ = [
    "AuthoringState",
    "ConditionInput",
    "DiagramModel",
    "EntityAdd",
    "EntityChange",
    "EntityData",
    "EntityDelete",
    "ParsedCondition",
    "ProjectedGraph",
    "RelationAdd",
    "RelationChange",
    "RelationData",
    "RelationDelete",
    "RelationKey",
    "SceneMetadataProvider",
    "WorkspaceEditor",
    "apply_authoring_state",
    "deserialize_condition",
    "load_authoring_delta",
    "make_scene_schema",
    "parse_condition",
    "project_graph",
    "project_rules",
    "reconcile_rules",
    "rule_key",
    "rules_into_quads",
    "serialize_condition",
    "validate_condition",
]
