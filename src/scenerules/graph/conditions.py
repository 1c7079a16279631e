"""Transition condition codec.

A condition ``(name, operator, value)`` is stored on a transition as a single
literal ``"<name> <symbol> <value>"`` with the ``RuleCondition`` datatype,
e.g. ``"hp <= 0"``. The datatype lets consumers tell condition literals apart
from other literals attached to the same relation.

Two parsing paths exist:

- :func:`deserialize_condition` reads stored literals and raises
  :class:`~scenerules.errors.MalformedCondition` on bad input.
- :func:`validate_condition` backs live form editing and never raises;
  invalid intermediate input yields an unbuilt :class:`ParsedCondition`
  carrying a message for display.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from scenerules.errors import MalformedCondition
from scenerules.graph.terms import LiteralTerm, Term, format_number, parse_number, term_to_string
from scenerules.graph.vocabulary import RULE_CONDITION
from scenerules.models.rules import CONDITION_NAME_PATTERN, KNOWN_OPERATORS, SceneRuleCondition

OPERATOR_SYMBOLS: dict[str, str] = {
    "EQ": "=",
    "GT": ">",
    "GE": ">=",
    "LT": "<",
    "LE": "<=",
}
_SYMBOL_OPERATORS = {symbol: operator for operator, symbol in OPERATOR_SYMBOLS.items()}

_EXPRESSION_PATTERN = re.compile(r"(\S+)\s+(\S+)\s+(\S+)")

NAME_MESSAGE = "Condition property name should only include characters from [a-z0-9_]+"
VALUE_MESSAGE = "Invalid numeric value for the condition"


def serialize_condition(condition: SceneRuleCondition) -> LiteralTerm:
    """Encode a condition as a ``RuleCondition`` literal."""
    symbol = OPERATOR_SYMBOLS.get(condition.operator, condition.operator)
    return LiteralTerm(
        f"{condition.name} {symbol} {format_number(condition.value)}",
        RULE_CONDITION,
    )


def deserialize_condition(expression: LiteralTerm) -> SceneRuleCondition:
    """Decode a condition literal.

    Operator symbols outside ``= > >= < <=`` are passed through unchanged
    as the operator.

    Raises:
        MalformedCondition: If the literal does not have exactly three
            fields, the name is not an identifier, or the value is not a
            finite number.
    """
    match = _EXPRESSION_PATTERN.fullmatch(expression.value)
    if match is None:
        raise MalformedCondition(expression.value, "expected '<name> <operator> <value>'")

    name, symbol, value_text = match.groups()
    if not CONDITION_NAME_PATTERN.fullmatch(name):
        raise MalformedCondition(expression.value, f"invalid property name '{name}'")

    value = parse_number(value_text)
    if value is None:
        raise MalformedCondition(expression.value, f"'{value_text}' is not a finite number")

    return SceneRuleCondition(
        name=name,
        operator=_SYMBOL_OPERATORS.get(symbol, symbol),
        value=value,
    )


@dataclass(frozen=True)
class ParsedCondition:
    """Form state of a condition being edited.

    Attributes:
        expression: Term the state was derived from, or the freshly built
            literal when ``built`` is set.
        built: The condition, or None while the input is invalid.
        name: Property name as typed.
        operator: Operator code (``EQ``, ``GT``, ...).
        value: Value as typed.
        validation_message: Displayable reason the input is not built.
    """

    expression: Term | None
    built: SceneRuleCondition | None
    name: str
    operator: str
    value: str
    validation_message: str | None = None

    @property
    def is_built(self) -> bool:
        return self.built is not None


def parse_condition(expression: Term) -> ParsedCondition:
    """Turn a stored term into form state."""
    if isinstance(expression, LiteralTerm):
        try:
            condition = deserialize_condition(expression)
        except MalformedCondition as e:
            message = f"Invalid condition: {e.reason} in {term_to_string(expression)}"
        else:
            return ParsedCondition(
                expression=expression,
                built=condition,
                name=condition.name,
                operator=condition.operator,
                value=format_number(condition.value),
            )
    else:
        message = "Condition is not a literal"

    return ParsedCondition(
        expression=expression,
        built=None,
        name="",
        operator="EQ",
        value="",
        validation_message=message,
    )


def validate_condition(
    name: str,
    operator: str,
    value: str,
    *,
    expression: Term | None = None,
) -> ParsedCondition:
    """Build a condition from free-form input.

    Args:
        name: Property name as typed.
        operator: Operator code from the operator picker.
        value: Value as typed.
        expression: Previous term, kept on the result while input is invalid.

    Returns:
        Built state with a fresh literal, or an unbuilt state with a
        validation message.
    """
    unbuilt = ParsedCondition(
        expression=expression,
        built=None,
        name=name,
        operator=operator,
        value=value,
    )

    if not CONDITION_NAME_PATTERN.fullmatch(name):
        return _with_message(unbuilt, NAME_MESSAGE)

    if operator not in KNOWN_OPERATORS:
        return _with_message(
            unbuilt,
            f"Unknown condition operator '{operator}', expected one of {', '.join(KNOWN_OPERATORS)}",
        )

    number = parse_number(value)
    if number is None:
        return _with_message(unbuilt, VALUE_MESSAGE)

    built = SceneRuleCondition(name=name, operator=operator, value=number)
    return ParsedCondition(
        expression=serialize_condition(built),
        built=built,
        name=name,
        operator=operator,
        value=value,
    )


def _with_message(state: ParsedCondition, message: str) -> ParsedCondition:
    return ParsedCondition(
        expression=state.expression,
        built=None,
        name=state.name,
        operator=state.operator,
        value=state.value,
        validation_message=message,
    )


class ConditionInput:
    """Editing session for a single condition value.

    Every update is re-validated. Only a successfully built condition
    replaces :attr:`value`; while the input is invalid the last built
    literal stays the value of record.
    """

    def __init__(self, value: Term) -> None:
        self._value = value
        self._state = parse_condition(value)

    @property
    def value(self) -> Term:
        """The value of record."""
        return self._value

    @property
    def state(self) -> ParsedCondition:
        return self._state

    def reset(self, value: Term) -> None:
        """Follow an external change of the stored value."""
        self._value = value
        if self._state.expression != value:
            self._state = parse_condition(value)

    def update(
        self,
        *,
        name: str | None = None,
        operator: str | None = None,
        value: str | None = None,
    ) -> ParsedCondition:
        """Apply an edit to one or more fields."""
        current = self._state
        next_state = validate_condition(
            current.name if name is None else name,
            current.operator if operator is None else operator,
            current.value if value is None else value,
            expression=current.expression,
        )
        self._state = next_state
        if next_state.built is not None and next_state.expression is not None:
            self._value = next_state.expression
        return next_state
