"""Scene rule data models."""

from scenerules.models.rules import (
    CONDITION_NAME_PATTERN,
    DEFAULT_WEIGHT,
    KNOWN_OPERATORS,
    RuleOperator,
    SceneRule,
    SceneRuleCondition,
    dump_rules_json,
    load_rules_json,
    scene_ids,
)

__all__ = [
    "CONDITION_NAME_PATTERN",
    "DEFAULT_WEIGHT",
    "KNOWN_OPERATORS",
    "RuleOperator",
    "SceneRule",
    "SceneRuleCondition",
    "dump_rules_json",
    "load_rules_json",
    "scene_ids",
]
