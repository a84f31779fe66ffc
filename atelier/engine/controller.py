"""Workspace controller — owns the application state and its handlers.

The controller is the single owner of ``ApplicationState``. Work is
split across handler objects that keep a reference back to it:

- TreeNavigator: directory listing and in-place expansion
- EntryLifecycle: load/save/create/delete and edit tracking
- SessionDispatcher: chat send orchestration
- Bootstrapper: one-time startup

All handlers run on one event loop. There is no lock around the state;
instead each handler captures what it needs before suspending, and
overlapping operations on the same entry are rejected via ``claim``.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from atelier.engine.bootstrap import Bootstrapper, SourceReader
from atelier.engine.config import WorkspaceConfig
from atelier.engine.dispatch import SessionDispatcher
from atelier.engine.errors import EntryBusyError
from atelier.engine.interfaces import Session, Store, View
from atelier.engine.lifecycle import EntryLifecycle
from atelier.engine.navigator import TreeNavigator
from atelier.engine.paths import ROOT
from atelier.engine.state import ApplicationState
from atelier.engine.tree import WorkspaceTree
from atelier.shared.services.export import SourceExporter

logger = logging.getLogger(__name__)


class WorkspaceController:
    """Entry point for every user action on the workspace."""

    def __init__(
        self,
        store: Store,
        view: View,
        session: Session,
        *,
        config: WorkspaceConfig | None = None,
        exporter: SourceExporter | None = None,
        source_reader: SourceReader | None = None,
    ) -> None:
        self.store = store
        self.view = view
        self.session = session
        self.config = config or WorkspaceConfig()
        self.exporter = exporter or SourceExporter(self.config.export_dir)
        self.state = ApplicationState()
        self.tree = WorkspaceTree(ROOT)
        # path -> operation currently running on it
        self._busy: dict[str, str] = {}
        self.navigator = TreeNavigator(self)
        self.lifecycle = EntryLifecycle(self)
        self.dispatcher = SessionDispatcher(self)
        self.bootstrapper = Bootstrapper(self, source_reader)

    # ── shared helpers ──────────────────────────────────────────────

    def refresh_buttons(self) -> None:
        s = self.state
        self.view.set_button_states(s.has_selection, s.is_dirty, s.has_text)

    def disable_buttons(self) -> None:
        self.view.set_button_states(False, False, False)

    def is_busy(self, path: str) -> bool:
        return path in self._busy

    @contextmanager
    def claim(self, path: str, operation: str) -> Iterator[None]:
        """Mark *path* busy for the duration of *operation*.

        Raises EntryBusyError when another operation already holds it.
        """
        running = self._busy.get(path)
        if running is not None:
            logger.info("Rejected %s on %s: %s in progress", operation, path, running)
            raise EntryBusyError(path, operation)
        self._busy[path] = operation
        try:
            yield
        finally:
            self._busy.pop(path, None)

    # ── public API ──────────────────────────────────────────────────

    async def start(self) -> bool:
        return await self.bootstrapper.start()

    async def navigate(self, directory: str) -> bool:
        return await self.navigator.navigate(directory)

    async def refresh(self) -> None:
        await self.navigator.list_directory(self.state.current_directory)

    async def expand(self, node_id: int) -> None:
        await self.navigator.expand(node_id)

    def collapse(self, node_id: int) -> None:
        self.navigator.collapse(node_id)

    async def open_entry(self, path: str) -> bool:
        return await self.lifecycle.load(path)

    async def save(self, text: str | None = None) -> bool:
        return await self.lifecycle.save(text)

    async def create(self, name: str | None = None) -> bool:
        return await self.lifecycle.create(name)

    async def delete(self) -> bool:
        return await self.lifecycle.delete()

    def on_edit(self, text: str) -> None:
        self.lifecycle.on_edit(text)

    async def send(self, text: str | None = None) -> bool:
        return await self.dispatcher.dispatch(text)
