"""Scene rule models and the JSON rule-list file format.

A rule file is a JSON array of transitions::

    [
      {
        "current_scene": "start",
        "result_scene": "end",
        "weight": 2,
        "params": [{"name": "hp", "operator": "LE", "value": 0}]
      }
    ]

Scenes have no separate declaration; they are the union of the ids
referenced by the rules.
"""

from __future__ import annotations

import json
import math
import re
from typing import TYPE_CHECKING, Literal, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from scenerules.errors import MalformedInputJson
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

log = get_logger(__name__)

RuleOperator = Literal["EQ", "GT", "GE", "LT", "LE"]
KNOWN_OPERATORS: tuple[str, ...] = get_args(RuleOperator)

CONDITION_NAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
DEFAULT_WEIGHT = 1


class SceneRuleCondition(BaseModel):
    """A single numeric comparison gating a transition.

    ``operator`` is one of :data:`KNOWN_OPERATORS` for every condition the
    editor builds. Other operator strings are carried through unchanged
    rather than rejected.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=CONDITION_NAME_PATTERN.pattern)
    operator: str = Field(min_length=1)
    value: StrictInt | StrictFloat

    @field_validator("value")
    @classmethod
    def value_is_finite(cls, value: int | float) -> int | float:
        """Reject NaN and infinities."""
        if not math.isfinite(value):
            msg = "condition value must be a finite number"
            raise ValueError(msg)
        return value


class SceneRule(BaseModel):
    """A directed, weighted, conditionally gated transition between scenes.

    All ``params`` must hold for the transition to fire.
    """

    model_config = ConfigDict(frozen=True)

    current_scene: str = Field(min_length=1)
    result_scene: str = Field(min_length=1)
    weight: StrictInt | StrictFloat = DEFAULT_WEIGHT
    params: tuple[SceneRuleCondition, ...] = ()

    @field_validator("weight")
    @classmethod
    def weight_is_positive(cls, value: int | float) -> int | float:
        """Weights are positive finite numbers."""
        if not math.isfinite(value) or value <= 0:
            msg = "weight must be a positive finite number"
            raise ValueError(msg)
        return value

    def with_endpoints(self, current_scene: str, result_scene: str) -> SceneRule:
        """Return a copy of this rule pointing at different scenes."""
        return self.model_copy(
            update={"current_scene": current_scene, "result_scene": result_scene}
        )


_RULE_LIST = TypeAdapter(list[SceneRule])


def scene_ids(rules: Iterable[SceneRule]) -> list[str]:
    """Distinct scene ids referenced by *rules*, in first-appearance order."""
    seen: dict[str, None] = {}
    for rule in rules:
        seen.setdefault(rule.current_scene)
        seen.setdefault(rule.result_scene)
    return list(seen)


def load_rules_json(text: str, *, path: Path | None = None) -> list[SceneRule]:
    """Parse a JSON rule list.

    Args:
        text: File content.
        path: Source file, used only in error messages.

    Returns:
        Validated rules in file order.

    Raises:
        MalformedInputJson: If the content is not JSON or not a valid rule array.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputJson(f"not valid JSON ({e.msg} at line {e.lineno})", path) from e

    if not isinstance(data, list):
        raise MalformedInputJson(f"expected a JSON array, got {type(data).__name__}", path)

    try:
        rules = _RULE_LIST.validate_python(data)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise MalformedInputJson(
            f"{e.error_count()} invalid field(s)", path, details=details
        ) from e

    for index, rule in enumerate(rules):
        for condition in rule.params:
            if condition.operator not in KNOWN_OPERATORS:
                log.warning(
                    "unknown_condition_operator",
                    rule_index=index,
                    condition=condition.name,
                    operator=condition.operator,
                )

    log.debug("rules_loaded", rules=len(rules), path=str(path) if path else None)
    return rules


def dump_rules_json(
    rules: Iterable[SceneRule],
    *,
    indent: int = 2,
    ensure_ascii: bool = False,
) -> str:
    """Serialize rules to the pretty-printed JSON rule-list format."""
    data = [rule.model_dump(mode="json") for rule in rules]
    return json.dumps(data, indent=indent, ensure_ascii=ensure_ascii)
