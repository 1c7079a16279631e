"""Tests for the transition condition codec and condition form state."""

from __future__ import annotations

import pytest

from scenerules.errors import MalformedCondition
from scenerules.graph.conditions import (
    NAME_MESSAGE,
    VALUE_MESSAGE,
    ConditionInput,
    deserialize_condition,
    parse_condition,
    serialize_condition,
    validate_condition,
)
from scenerules.graph.terms import LiteralTerm, NamedNode
from scenerules.graph.vocabulary import RULE_CONDITION
from scenerules.models.rules import SceneRuleCondition


class TestSerializeCondition:
    """Encoding conditions as literals."""

    @pytest.mark.parametrize(
        ("operator", "expected"),
        [
            ("EQ", "hp = 0"),
            ("GT", "hp > 0"),
            ("GE", "hp >= 0"),
            ("LT", "hp < 0"),
            ("LE", "hp <= 0"),
        ],
    )
    def test_operator_symbols(self, operator: str, expected: str) -> None:
        literal = serialize_condition(SceneRuleCondition(name="hp", operator=operator, value=0))

        assert literal.value == expected
        assert literal.datatype == RULE_CONDITION

    def test_integral_float_has_no_fraction(self) -> None:
        literal = serialize_condition(SceneRuleCondition(name="gold", operator="GE", value=2.0))
        assert literal.value == "gold >= 2"

    def test_fractional_value(self) -> None:
        literal = serialize_condition(SceneRuleCondition(name="gold", operator="LT", value=-1.5))
        assert literal.value == "gold < -1.5"

    def test_unknown_operator_passes_through(self) -> None:
        literal = serialize_condition(SceneRuleCondition(name="hp", operator="NE", value=1))
        assert literal.value == "hp NE 1"


class TestDeserializeCondition:
    """Decoding condition literals."""

    def test_round_trip(self) -> None:
        condition = SceneRuleCondition(name="spd", operator="GT", value=10)
        assert deserialize_condition(serialize_condition(condition)) == condition

    def test_round_trip_unknown_operator(self) -> None:
        condition = SceneRuleCondition(name="hp", operator="NE", value=1)
        assert deserialize_condition(serialize_condition(condition)) == condition

    def test_extra_whitespace_between_fields(self) -> None:
        condition = deserialize_condition(LiteralTerm("hp   <=\t0", RULE_CONDITION))
        assert condition == SceneRuleCondition(name="hp", operator="LE", value=0)

    def test_unknown_symbol_becomes_operator(self) -> None:
        condition = deserialize_condition(LiteralTerm("hp != 3", RULE_CONDITION))
        assert condition.operator == "!="

    @pytest.mark.parametrize("text", ["hp <=", "hp <= 0 extra", "", " hp <= 0"])
    def test_wrong_field_count(self, text: str) -> None:
        with pytest.raises(MalformedCondition, match="expected '<name> <operator> <value>'"):
            deserialize_condition(LiteralTerm(text, RULE_CONDITION))

    def test_bad_name(self) -> None:
        with pytest.raises(MalformedCondition, match="invalid property name 'Hp'") as exc_info:
            deserialize_condition(LiteralTerm("Hp <= 0", RULE_CONDITION))

        assert exc_info.value.expression == "Hp <= 0"

    @pytest.mark.parametrize("value", ["abc", "inf", "NaN", "1e999"])
    def test_bad_value(self, value: str) -> None:
        with pytest.raises(MalformedCondition, match="is not a finite number"):
            deserialize_condition(LiteralTerm(f"hp <= {value}", RULE_CONDITION))

    def test_error_message_names_expression(self) -> None:
        with pytest.raises(MalformedCondition) as exc_info:
            deserialize_condition(LiteralTerm("nonsense", RULE_CONDITION))

        assert str(exc_info.value).startswith(
            "Invalid scene rule transition condition expression 'nonsense'"
        )


class TestParseCondition:
    """Turning stored terms into form state."""

    def test_valid_literal(self) -> None:
        state = parse_condition(LiteralTerm("hp <= 0", RULE_CONDITION))

        assert state.is_built
        assert state.name == "hp"
        assert state.operator == "LE"
        assert state.value == "0"
        assert state.validation_message is None

    def test_malformed_literal(self) -> None:
        state = parse_condition(LiteralTerm("broken", RULE_CONDITION))

        assert not state.is_built
        assert state.operator == "EQ"
        assert state.validation_message is not None
        assert state.validation_message.startswith("Invalid condition:")

    def test_named_node(self) -> None:
        state = parse_condition(NamedNode("urn:x"))

        assert not state.is_built
        assert state.validation_message == "Condition is not a literal"


class TestValidateCondition:
    """Validation of free-form condition input."""

    def test_builds_condition(self) -> None:
        state = validate_condition("spd", "GT", "10")

        assert state.built == SceneRuleCondition(name="spd", operator="GT", value=10)
        assert state.expression == LiteralTerm("spd > 10", RULE_CONDITION)
        assert state.validation_message is None

    def test_decimal_value(self) -> None:
        state = validate_condition("gold", "LT", "2.5")
        assert state.built is not None
        assert state.built.value == 2.5

    def test_bad_name(self) -> None:
        state = validate_condition("Spd!", "GT", "10")

        assert state.built is None
        assert state.validation_message == NAME_MESSAGE
        assert state.name == "Spd!"

    def test_bad_value(self) -> None:
        state = validate_condition("spd", "GT", "abc")

        assert state.built is None
        assert state.validation_message == VALUE_MESSAGE

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_value(self, value: str) -> None:
        state = validate_condition("spd", "GT", value)
        assert state.validation_message == VALUE_MESSAGE

    def test_unknown_operator(self) -> None:
        state = validate_condition("spd", "NE", "1")

        assert state.built is None
        assert state.validation_message is not None
        assert "Unknown condition operator 'NE'" in state.validation_message

    def test_keeps_previous_expression_when_invalid(self) -> None:
        previous = LiteralTerm("spd > 10", RULE_CONDITION)
        state = validate_condition("spd", "GT", "x", expression=previous)
        assert state.expression == previous


class TestConditionInput:
    """Editing session over a single condition value."""

    def test_starts_from_stored_value(self) -> None:
        stored = LiteralTerm("hp <= 0", RULE_CONDITION)
        field = ConditionInput(stored)

        assert field.value == stored
        assert field.state.name == "hp"

    def test_valid_update_replaces_value(self) -> None:
        field = ConditionInput(LiteralTerm("hp <= 0", RULE_CONDITION))

        field.update(value="5")

        assert field.value == LiteralTerm("hp <= 5", RULE_CONDITION)

    def test_invalid_update_keeps_last_built_value(self) -> None:
        field = ConditionInput(LiteralTerm("hp <= 0", RULE_CONDITION))
        field.update(operator="GT")

        state = field.update(value="lots")

        assert not state.is_built
        assert state.validation_message == VALUE_MESSAGE
        assert field.value == LiteralTerm("hp > 0", RULE_CONDITION)

    def test_recovers_after_invalid_input(self) -> None:
        field = ConditionInput(LiteralTerm("hp <= 0", RULE_CONDITION))
        field.update(name="Bad")
        field.update(name="mp")

        assert field.value == LiteralTerm("mp <= 0", RULE_CONDITION)

    def test_reset_follows_external_change(self) -> None:
        field = ConditionInput(LiteralTerm("hp <= 0", RULE_CONDITION))

        field.reset(LiteralTerm("gold = 3", RULE_CONDITION))

        assert field.state.name == "gold"
        assert field.state.operator == "EQ"
