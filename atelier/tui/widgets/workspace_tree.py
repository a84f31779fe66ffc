"""Workspace tree widget — renders a WorkspaceTree value.

The widget never talks to the store. Selecting a label, expanding and
collapsing are reported through the standard Tree messages and the
screen forwards them to the controller, which re-renders.
"""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Tree
from textual.widgets._tree import TreeNode as WidgetNode

from atelier.engine.tree import NodeState, TreeNode, WorkspaceTree

_MARKERS = {
    NodeState.LOADING: ("Loading…", "dim italic"),
    NodeState.EMPTY: ("(empty)", "dim"),
}


class WorkspaceTreeView(Tree[TreeNode]):
    """Directory tree; node data is the engine's TreeNode (None for markers)."""

    BINDINGS = [
        ("enter", "select_cursor", "Open"),
        ("space", "toggle_node", "Expand/Collapse"),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__("/", **kwargs)
        # Selecting a label opens it; only the toggle expands.
        self.auto_expand = False
        self.show_root = True
        self.guide_depth = 3

    def render_label(self, node: WidgetNode[TreeNode], base_style, style) -> Text:
        model = node.data
        if model is None:
            return Text(str(node.label), style=style)
        label = Text(str(node.label), style=style)
        if model.is_directory and not node.is_root:
            label.append("/", style="dim")
            label.stylize("bold")
        return label

    def show_workspace(self, tree: WorkspaceTree) -> None:
        """Rebuild the widget from *tree*, keeping the cursor on the same path."""
        cursor = self.cursor_node
        cursor_path = cursor.data.path if cursor is not None and cursor.data else None

        self.clear()
        root = tree.root
        self.root.set_label(root.path)
        self.root.data = root
        self._add_children(self.root, tree, root)
        self.root.expand()

        if cursor_path is not None:
            for widget_node in self._walk(self.root):
                if widget_node.data is not None and widget_node.data.path == cursor_path:
                    self.call_after_refresh(self.move_cursor, widget_node)
                    break

    def _add_children(self, parent: WidgetNode[TreeNode], tree: WorkspaceTree, model: TreeNode) -> None:
        if model.state is NodeState.ERROR:
            parent.add_leaf(Text(f"⚠ {model.error or 'Error'}", style="red"))
            return
        marker = _MARKERS.get(model.state)
        if marker is not None:
            text, style = marker
            parent.add_leaf(Text(text, style=style))
            return
        for child in tree.children(model.id):
            if child.is_directory:
                node = parent.add(child.name, data=child, expand=child.expanded)
                self._add_children(node, tree, child)
            else:
                parent.add_leaf(child.name, data=child)

    def _walk(self, node: WidgetNode[TreeNode]):
        yield node
        for child in node.children:
            yield from self._walk(child)
