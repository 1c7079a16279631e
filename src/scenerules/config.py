"""Editor configuration loading.

Configuration lives in an optional ``scenerules.yaml`` next to the rule
files::

    output:
      filename: scene_rules.json
      indent: 2
      ensure_ascii: false

Resolution order for each setting:
1. Environment variable (``SCENERULES_JSON_INDENT``, ``SCENERULES_OUTPUT_FILENAME``)
2. Config file
3. Built-in default
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML, YAMLError

CONFIG_FILENAME = "scenerules.yaml"
DEFAULT_OUTPUT_FILENAME = "scene_rules.json"
DEFAULT_JSON_INDENT = 2


@dataclass
class EditorConfig:
    """How rule lists are written back to disk."""

    output_filename: str = DEFAULT_OUTPUT_FILENAME
    json_indent: int = DEFAULT_JSON_INDENT
    ensure_ascii: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorConfig:
        """Create config from dictionary.

        Args:
            data: Parsed config file content.

        Returns:
            EditorConfig instance with environment overrides applied.
        """
        output = data.get("output") or {}

        indent_env = os.getenv("SCENERULES_JSON_INDENT")
        indent = int(indent_env) if indent_env else output.get("indent", DEFAULT_JSON_INDENT)

        return cls(
            output_filename=os.getenv("SCENERULES_OUTPUT_FILENAME")
            or output.get("filename", DEFAULT_OUTPUT_FILENAME),
            json_indent=indent,
            ensure_ascii=bool(output.get("ensure_ascii", False)),
        )


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")


def load_config(directory: Path) -> EditorConfig:
    """Load configuration from ``scenerules.yaml`` in *directory*.

    A missing file yields the defaults (plus environment overrides).

    Raises:
        ConfigError: If the file exists but is not a valid YAML mapping.
    """
    config_path = directory / CONFIG_FILENAME
    if not config_path.exists():
        return EditorConfig.from_dict({})

    yaml = YAML(typ="safe")
    try:
        with config_path.open() as f:
            data = yaml.load(f)
    except YAMLError as e:
        raise ConfigError(config_path, str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(config_path, "expected a mapping at the top level")

    try:
        return EditorConfig.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(config_path, str(e)) from e
