"""Commit pending authoring edits into the diagram model.

Runs once per save, after the rule list has been reconciled. All edits are
made inside a single diagram transaction, so one undo reverts the whole
commit, including the cleared authoring state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scenerules.graph.authoring import AuthoringState, EntityChange, RelationChange
from scenerules.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from scenerules.graph.diagram import DiagramModel
    from scenerules.graph.editor import WorkspaceEditor

log = get_logger(__name__)

COMMIT_TITLE = "Apply authoring changes"


def apply_authoring_state(
    model: DiagramModel,
    editor: WorkspaceEditor,
    on_undo: Callable[[], None] | None = None,
) -> None:
    """Fold the editor's authoring state into *model* and clear it.

    Order: relation changes, relation deletions, entity changes (including
    renames), entity deletions. Deleted members are removed from groups and
    groups left empty are removed. *on_undo* runs when the commit is undone.
    """
    state = editor.authoring_state

    with model.transaction(COMMIT_TITLE) as tx:
        changed_relations = 0
        for event in state.links.values():
            if isinstance(event, RelationChange):
                model.change_relation_data(event.before, event.data)
                changed_relations += 1

        removed_links: list[str] = []
        for link in model.links.values():
            if link.kind == "relation":
                if state.is_deleted_relation(link.data.key):
                    removed_links.append(link.id)
            else:
                kept = [item for item in link.items if not state.is_deleted_relation(item.key)]
                if not kept:
                    removed_links.append(link.id)
                elif len(kept) != len(link.items):
                    model.set_relation_group_items(link.id, kept)
        for link_id in removed_links:
            model.remove_link(link_id)

        changed_entities = 0
        for event in state.elements.values():
            if isinstance(event, EntityChange):
                data = event.data if event.new_iri is None else event.data.with_id(event.new_iri)
                model.change_entity_data(event.before.id, data)
                changed_entities += 1

        removed_elements: list[str] = []
        for element in model.elements.values():
            if element.kind == "entity":
                if state.is_deleted_entity(element.data.id):
                    removed_elements.append(element.id)
            else:
                kept_items = [
                    item for item in element.items if not state.is_deleted_entity(item.id)
                ]
                if not kept_items:
                    removed_elements.append(element.id)
                elif len(kept_items) != len(element.items):
                    model.set_entity_group_items(element.id, kept_items)
        for element_id in removed_elements:
            model.remove_element(element_id)

        editor.set_authoring_state(AuthoringState.empty())
        tx.on_undo(lambda: editor.set_authoring_state(state))
        if on_undo is not None:
            tx.on_undo(on_undo)

    log.info(
        "authoring_state_committed",
        changed_relations=changed_relations,
        removed_links=len(removed_links),
        changed_entities=changed_entities,
        removed_elements=len(removed_elements),
    )
