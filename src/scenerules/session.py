"""Load/save cycle for one rule file.

:class:`SceneRulesSession` is the context object threaded through a cycle:
it owns the rule list of record, the diagram built from it and the editor
collecting authoring edits.

Host contract:

- :func:`import_rules` projects rules for display.
- :func:`export_rules` folds pending edits into a new rule list and its
  JSON text.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from scenerules.config import EditorConfig
from scenerules.errors import LoadCancelled
from scenerules.graph.commit import apply_authoring_state
from scenerules.graph.diagram import DiagramModel
from scenerules.graph.editor import WorkspaceEditor
from scenerules.graph.projection import ProjectedGraph, project_rules
from scenerules.graph.reconcile import reconcile_rules
from scenerules.models.rules import SceneRule, dump_rules_json, load_rules_json
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from pathlib import Path

    from scenerules.graph.authoring import AuthoringState
    from scenerules.graph.metadata import SceneMetadataProvider

    LayoutFn = Callable[[DiagramModel, asyncio.Event | None], Awaitable[None]]

log = get_logger(__name__)


def import_rules(rules: Sequence[SceneRule]) -> ProjectedGraph:
    """Project a rule list into scene entities and transition relations."""
    return project_rules(rules)


def export_rules(
    rules: Sequence[SceneRule],
    state: AuthoringState,
    config: EditorConfig | None = None,
) -> tuple[list[SceneRule], str]:
    """Reconcile pending edits with *rules* and serialize the result.

    Raises:
        ReconciliationError: If an edited transition is malformed.
    """
    config = config or EditorConfig()
    new_rules = reconcile_rules(rules, state)
    text = dump_rules_json(new_rules, indent=config.json_indent, ensure_ascii=config.ensure_ascii)
    return new_rules, text


def _raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise LoadCancelled("Loading scene rules was cancelled")


class SceneRulesSession:
    """Rule list, diagram and editor for one authoring session."""

    def __init__(
        self,
        config: EditorConfig | None = None,
        metadata: SceneMetadataProvider | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.rules: list[SceneRule] = []
        self.model = DiagramModel()
        self.editor = WorkspaceEditor(self.model, metadata)

    async def open(
        self,
        json_text: str,
        *,
        path: Path | None = None,
        layout: LayoutFn | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Replace the session content with a rule file.

        The new rules, diagram and editor are only installed once loading
        and layout have finished; on any failure or cancellation the
        previous content stays in place.

        Args:
            json_text: Rule file content.
            path: Source file, for error messages.
            layout: Optional coroutine arranging the new diagram.
            cancel: Set by the caller to abandon the load.

        Raises:
            MalformedInputJson: If the content is not a valid rule list.
            LoadCancelled: If *cancel* was set before the load completed.
        """
        rules = load_rules_json(json_text, path=path)
        _raise_if_cancelled(cancel)

        model = DiagramModel()
        model.load_projection(import_rules(rules), positions=self.model.positions())

        if layout is not None:
            await layout(model, cancel)
        _raise_if_cancelled(cancel)

        self.rules = rules
        self.model = model
        self.editor = WorkspaceEditor(model, self.editor.metadata)
        log.info(
            "rules_opened",
            rules=len(rules),
            scenes=len(model.elements),
            path=str(path) if path else None,
        )

    def save(self) -> str:
        """Reconcile and commit pending edits, returning the new JSON text.

        If reconciliation fails, the rule list, diagram and authoring state
        are left as they were. Undoing the commit restores all three.
        """
        new_rules, text = export_rules(self.rules, self.editor.authoring_state, self.config)
        old_rules = self.rules

        def restore_rules() -> None:
            self.rules = old_rules

        apply_authoring_state(self.model, self.editor, on_undo=restore_rules)
        self.rules = new_rules
        return text

    def save_to(self, directory: Path) -> Path:
        """Save and write the JSON text to the configured output file."""
        text = self.save()
        directory.mkdir(parents=True, exist_ok=True)
        output_file = directory / self.config.output_filename
        output_file.write_text(text + "\n", encoding="utf-8")
        log.info("rules_written", path=str(output_file), rules=len(self.rules))
        return output_file

    def reproject(self) -> None:
        """Rebuild the diagram from the rule list, keeping scene positions."""
        model = DiagramModel()
        model.load_projection(import_rules(self.rules), positions=self.model.positions())
        self.model = model
        self.editor = WorkspaceEditor(model, self.editor.metadata)
