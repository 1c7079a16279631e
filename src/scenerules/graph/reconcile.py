"""Fold authoring edits back into a scene rule list.

The steps run in a fixed order, each consuming the previous one's output:

1. drop rules whose transition was deleted (directly or with an endpoint)
2. re-derive weight and conditions of changed transitions
3. append a rule for every added transition whose scenes still exist
4. rewrite renamed scene ids in the endpoints of the rules from 2-3

Deletions are resolved before renames so a deleted rule can never come back
under a renamed scene.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scenerules.errors import MalformedCondition, MalformedWeight, ReconciliationError
from scenerules.graph.conditions import deserialize_condition
from scenerules.graph.model import RelationKey
from scenerules.graph.terms import LiteralTerm, parse_number
from scenerules.graph.vocabulary import (
    CONDITION,
    RULE_CONDITION,
    TO,
    WEIGHT,
    scene_id_from_iri,
    scene_iri,
)
from scenerules.models.rules import DEFAULT_WEIGHT, SceneRule, SceneRuleCondition
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scenerules.graph.authoring import AuthoringState
    from scenerules.graph.model import RelationData

log = get_logger(__name__)


def rule_key(rule: SceneRule) -> RelationKey:
    """Key of the relation a rule is projected to."""
    return RelationKey(scene_iri(rule.current_scene), scene_iri(rule.result_scene), TO)


def relation_weight(relation: RelationData) -> int | float:
    """Weight stated on a relation; 1 when no weight literal is present.

    Raises:
        MalformedWeight: If the literal is not a positive finite number.
    """
    for value in relation.values(WEIGHT):
        if isinstance(value, LiteralTerm):
            weight = parse_number(value.value)
            if weight is None or weight <= 0:
                raise MalformedWeight(value.value)
            return weight
    return DEFAULT_WEIGHT


def relation_conditions(relation: RelationData) -> tuple[SceneRuleCondition, ...]:
    """Conditions stated on a relation, ignoring non-condition literals.

    Raises:
        MalformedCondition: If a condition literal does not parse.
    """
    return tuple(
        deserialize_condition(value)
        for value in relation.values(CONDITION)
        if isinstance(value, LiteralTerm) and value.datatype == RULE_CONDITION
    )


def _fold_properties(rule: SceneRule, relation: RelationData) -> SceneRule:
    try:
        weight = relation_weight(relation)
        params = relation_conditions(relation)
    except (MalformedCondition, MalformedWeight) as e:
        raise ReconciliationError(relation.key, str(e)) from e
    return rule.model_copy(update={"weight": weight, "params": params})


def reconcile_rules(rules: Sequence[SceneRule], state: AuthoringState) -> list[SceneRule]:
    """Produce the rule list that reflects every pending authoring edit.

    Args:
        rules: Rule list as of the last save.
        state: Pending authoring edits; read, never modified.

    Returns:
        New rule list: surviving rules in their original order, followed by
        added transitions.

    Raises:
        ReconciliationError: If a changed or added transition carries a
            malformed condition or weight. No partial result is produced.
    """
    survivors = [rule for rule in rules if not state.is_deleted_relation(rule_key(rule))]

    folded: list[SceneRule] = []
    changed = 0
    for rule in survivors:
        relation = state.changed_relation(rule_key(rule))
        if relation is None:
            folded.append(rule)
        else:
            folded.append(_fold_properties(rule, relation))
            changed += 1

    added = 0
    for relation in state.added_relations():
        if relation.link_type_id != TO or state.is_deleted_relation(relation.key):
            continue
        seed = SceneRule(
            current_scene=scene_id_from_iri(relation.source_id),
            result_scene=scene_id_from_iri(relation.target_id),
        )
        folded.append(_fold_properties(seed, relation))
        added += 1

    renames = {
        scene_id_from_iri(old): scene_id_from_iri(new) for old, new in state.renames().items()
    }
    result = [
        rule.with_endpoints(
            renames.get(rule.current_scene, rule.current_scene),
            renames.get(rule.result_scene, rule.result_scene),
        )
        if rule.current_scene in renames or rule.result_scene in renames
        else rule
        for rule in folded
    ]

    log.info(
        "rules_reconciled",
        before=len(rules),
        deleted=len(rules) - len(survivors),
        changed=changed,
        added=added,
        renamed_scenes=len(renames),
        after=len(result),
    )
    return result
