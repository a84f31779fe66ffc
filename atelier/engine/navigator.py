"""Tree navigator — directory listings and lazy in-place expansion."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from atelier.engine.errors import StoreError
from atelier.engine.interfaces import NoticeLevel
from atelier.engine.paths import normalize_directory
from atelier.engine.state import navigated
from atelier.engine.tree import NodeState, WorkspaceTree

if TYPE_CHECKING:
    from atelier.engine.controller import WorkspaceController

logger = logging.getLogger(__name__)


class TreeNavigator:
    """Lists directories into a fresh tree and grows it on demand."""

    def __init__(self, controller: WorkspaceController) -> None:
        self._c = controller

    async def navigate(self, directory: str) -> bool:
        """User-initiated move into *directory*; asks before dropping edits."""
        if not await self._c.lifecycle.confirm_discard():
            return False
        await self.list_directory(directory)
        return True

    async def list_directory(self, directory: str) -> None:
        """Replace the view with a listing of *directory*.

        Resets selection, edits and the open chat. A listing failure is
        rendered as an error marker on the tree root.
        """
        c = self._c
        view = c.view
        directory = normalize_directory(directory)
        logger.info("Listing %s", directory)

        c.state = navigated(c.state, directory)
        view.set_loading(True, f"Loading {directory}…")
        view.show_editor(None)
        c.session.clear()

        tree = WorkspaceTree(directory)
        c.tree = tree
        try:
            entries = await c.store.list(directory)
        except StoreError as exc:
            logger.error("Error listing %s: %s", directory, exc)
            tree.fail(tree.root.id, "Failed to load listing")
            view.show_notice(f"Error loading entries: {exc}", NoticeLevel.ERROR)
        else:
            tree.populate(tree.root.id, entries)

        # A newer listing may have replaced this one while we were waiting;
        # its loading indicator and buttons belong to it.
        if c.tree is not tree:
            logger.debug("Listing of %s superseded", directory)
            return
        view.set_loading(False)
        view.render_tree(tree)
        c.refresh_buttons()

    async def expand(self, node_id: int) -> None:
        """Show the children of a directory node, loading them once."""
        c = self._c
        tree = c.tree
        node = tree.node(node_id)
        if not node.is_directory:
            return
        node.expanded = True
        if node.is_populated or node.state is NodeState.LOADING:
            c.view.render_tree(tree)
            return

        logger.debug("Expanding %s at depth %d", node.path, node.depth)
        tree.mark_loading(node_id)
        c.view.render_tree(tree)
        try:
            entries = await c.store.list(node.path)
        except StoreError as exc:
            logger.error("Error expanding %s: %s", node.path, exc)
            tree.fail(node_id, "Error")
            c.view.show_notice(f"Error loading {node.path}: {exc}", NoticeLevel.ERROR)
        else:
            tree.populate(node_id, entries)

        if c.tree is tree:
            c.view.render_tree(tree)

    def collapse(self, node_id: int) -> None:
        """Hide a node's children; loaded content is kept."""
        tree = self._c.tree
        node = tree.node(node_id)
        if not node.expanded:
            return
        node.expanded = False
        self._c.view.render_tree(tree)
