"""Error types for rule loading, condition parsing and reconciliation.

Errors carry the offending value and a short reason so the CLI (or a host
editor) can show the author what to fix before retrying a load or save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from scenerules.graph.model import RelationKey


class SceneRulesError(Exception):
    """Base class for all Scene Rules errors."""


@dataclass
class MalformedInputJson(SceneRulesError):
    """Raised when file content is not a valid scene rule array.

    Attributes:
        reason: What is wrong with the content.
        path: File the content was read from, if known.
        details: Individual validation problems (location + message).
    """

    reason: str
    path: Path | None = None
    details: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        msg = "Malformed scene rules JSON"
        if self.path is not None:
            msg += f" in {self.path}"
        msg += f": {self.reason}"
        super().__init__(msg)

    def __str__(self) -> str:
        lines = [self.args[0]]
        for detail in self.details[:10]:
            lines.append(f"  - {detail}")
        if len(self.details) > 10:
            lines.append(f"  - ... and {len(self.details) - 10} more")
        return "\n".join(lines)


@dataclass
class MalformedCondition(SceneRulesError):
    """Raised when a condition literal does not parse.

    Attributes:
        expression: The literal text that failed to parse.
        reason: Which part of the grammar was violated.
    """

    expression: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Invalid scene rule transition condition expression '{self.expression}': "
            f"{self.reason}"
        )


@dataclass
class MalformedWeight(SceneRulesError):
    """Raised when a transition weight literal is not a positive finite number."""

    value: str

    def __post_init__(self) -> None:
        super().__init__(f"Invalid transition weight '{self.value}'")


@dataclass
class ReconciliationError(SceneRulesError):
    """Raised when authoring changes cannot be folded into the rule list.

    The prior rule list is left untouched; the author should fix the
    offending transition and save again.

    Attributes:
        relation_key: Key of the transition whose properties are invalid.
        reason: Message of the underlying parse failure.
    """

    relation_key: RelationKey
    reason: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Cannot save transition {self.relation_key.source_id} -> "
            f"{self.relation_key.target_id}: {self.reason}"
        )


@dataclass
class EdgeEndpointError(SceneRulesError):
    """Raised when a relation references endpoints that were not projected.

    Both the source and target nodes must be emitted before a relation
    between them.

    Attributes:
        link_type: Type of relation being created.
        source_id: Source node IRI.
        target_id: Target node IRI.
        missing: Which endpoint is missing ("source", "target", or "both").
    """

    link_type: str
    source_id: str
    target_id: str
    missing: str

    def __post_init__(self) -> None:
        if self.missing == "both":
            msg = (
                f"Relation '{self.link_type}' endpoints not found: "
                f"'{self.source_id}' and '{self.target_id}'"
            )
        elif self.missing == "source":
            msg = f"Relation '{self.link_type}' source not found: '{self.source_id}'"
        else:
            msg = f"Relation '{self.link_type}' target not found: '{self.target_id}'"
        super().__init__(msg)


class LoadCancelled(SceneRulesError):
    """Raised when a rule file load is cancelled before it completes."""


@dataclass
class EditNotAllowed(SceneRulesError):
    """Raised when the editor is asked for an edit the metadata forbids."""

    action: str
    target: str

    def __post_init__(self) -> None:
        super().__init__(f"Cannot {self.action} '{self.target}'")


@dataclass
class NotOnDiagram(SceneRulesError):
    """Raised when an edit targets a scene or transition the diagram lacks."""

    target: str

    def __post_init__(self) -> None:
        super().__init__(f"'{self.target}' is not on the diagram")
