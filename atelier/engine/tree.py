"""Workspace tree — the directory hierarchy as a value, apart from rendering.

Nodes live in a flat arena (``WorkspaceTree.nodes``) and refer to each
other by index. The navigator mutates the tree; widgets only read it.
"""
from __future__ import annotations

import locale
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from atelier.engine.models import Entry, EntryType
from atelier.engine.paths import get_name


class NodeState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"
    ERROR = "error"


_POPULATED = frozenset({NodeState.LOADED, NodeState.EMPTY, NodeState.ERROR})


@dataclass
class TreeNode:
    id: int
    path: str
    name: str
    type: EntryType
    depth: int
    parent: int | None = None
    children: list[int] = field(default_factory=list)
    state: NodeState = NodeState.UNLOADED
    expanded: bool = False
    error: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.type is EntryType.DIRECTORY

    @property
    def is_populated(self) -> bool:
        return self.state in _POPULATED


def _name_key(name: str) -> str:
    try:
        return locale.strxfrm(name.casefold())
    except (ValueError, OSError):
        return name.casefold()


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Directories first, then by display name (locale-aware)."""
    return sorted(
        entries,
        key=lambda e: (not e.is_directory, _name_key(e.name), e.name),
    )


class WorkspaceTree:
    """Arena of tree nodes rooted at one listed directory."""

    def __init__(self, root_path: str) -> None:
        self.nodes: list[TreeNode] = []
        root = TreeNode(
            id=0,
            path=root_path,
            name=get_name(root_path),
            type=EntryType.DIRECTORY,
            depth=0,
            state=NodeState.LOADING,
            expanded=True,
        )
        self.nodes.append(root)

    @property
    def root(self) -> TreeNode:
        return self.nodes[0]

    def node(self, node_id: int) -> TreeNode:
        return self.nodes[node_id]

    def find(self, path: str) -> TreeNode | None:
        for node in self.nodes:
            if node.path == path:
                return node
        return None

    def children(self, node_id: int) -> list[TreeNode]:
        return [self.nodes[i] for i in self.nodes[node_id].children]

    def mark_loading(self, node_id: int) -> None:
        node = self.nodes[node_id]
        node.state = NodeState.LOADING
        node.error = None

    def populate(self, node_id: int, entries: Iterable[Entry]) -> list[TreeNode]:
        """Attach sorted *entries* as children of *node_id*."""
        parent = self.nodes[node_id]
        parent.children = []
        added: list[TreeNode] = []
        for entry in sort_entries(entries):
            child = TreeNode(
                id=len(self.nodes),
                path=entry.path,
                name=entry.name,
                type=entry.type,
                depth=parent.depth + 1,
                parent=node_id,
            )
            self.nodes.append(child)
            parent.children.append(child.id)
            added.append(child)
        parent.state = NodeState.LOADED if added else NodeState.EMPTY
        parent.error = None
        return added

    def fail(self, node_id: int, message: str) -> None:
        node = self.nodes[node_id]
        node.children = []
        node.state = NodeState.ERROR
        node.error = message

    def walk(self, node_id: int = 0) -> Iterator[TreeNode]:
        """Depth-first pre-order over the subtree at *node_id*."""
        node = self.nodes[node_id]
        yield node
        for child_id in node.children:
            yield from self.walk(child_id)
