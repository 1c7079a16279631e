"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from scenerules.models.rules import SceneRule, SceneRuleCondition


@pytest.fixture(autouse=True)
def clear_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config overrides from the developer's shell out of test runs."""
    monkeypatch.delenv("SCENERULES_JSON_INDENT", raising=False)
    monkeypatch.delenv("SCENERULES_OUTPUT_FILENAME", raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sample_rules() -> list[SceneRule]:
    """Three-scene story: start branches to fight or end."""
    return [
        SceneRule(current_scene="start", result_scene="fight"),
        SceneRule(
            current_scene="fight",
            result_scene="end",
            weight=2,
            params=(SceneRuleCondition(name="hp", operator="LE", value=0),),
        ),
        SceneRule(
            current_scene="start",
            result_scene="end",
            weight=0.5,
            params=(
                SceneRuleCondition(name="spd", operator="GT", value=10),
                SceneRuleCondition(name="luck", operator="EQ", value=3),
            ),
        ),
    ]
