"""Shared fakes for controller tests.

The controller runs against the real SQLite store in a temp directory;
the view and session are recording fakes.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from atelier.engine.config import WorkspaceConfig
from atelier.engine.controller import WorkspaceController
from atelier.engine.errors import StoreError
from atelier.engine.interfaces import NoticeLevel, Session, View
from atelier.engine.models import AgentConfig, ChatSession, Entry
from atelier.engine.paths import ROOT
from atelier.engine.tree import WorkspaceTree
from atelier.shared.services.export import SourceExporter
from atelier.shared.services.store import EntryStore


class RecordingView(View):
    def __init__(self) -> None:
        self.events: list[str] = []
        self.trees: list[WorkspaceTree] = []
        self.notices: list[tuple[str, NoticeLevel, float]] = []
        self.editor_entry: Entry | None = None
        self.editor_text = ""
        self.status = ""
        self.buttons: tuple[bool, bool, bool] | None = None
        self.agent_panel: tuple[AgentConfig | None, str | None] = (None, None)
        self.loading = False
        self.loading_calls: list[bool] = []
        self.input_enabled = False
        self.confirm_answers: list[bool] = []
        self.confirm_messages: list[str] = []
        self.prompt_answers: list[str | None] = []

    @property
    def tree(self) -> WorkspaceTree:
        return self.trees[-1]

    def notices_at(self, level: NoticeLevel) -> list[str]:
        return [msg for msg, lvl, _ in self.notices if lvl is level]

    def render_tree(self, tree):
        self.events.append(f"render:{tree.root.path}")
        self.trees.append(tree)

    def set_loading(self, loading, message=None):
        self.loading = loading
        self.loading_calls.append(loading)

    def show_notice(self, message, level=NoticeLevel.INFO, duration=3.0):
        self.notices.append((message, level, duration))

    def show_editor(self, entry):
        self.editor_entry = entry
        self.editor_text = (entry.content or "") if entry is not None else ""

    def set_editor_text(self, text):
        self.editor_text = text

    def set_status(self, text):
        self.status = text

    def set_button_states(self, has_selection, is_dirty, has_text):
        self.buttons = (has_selection, is_dirty, has_text)

    def show_agent_config_panel(self, config, error=None):
        self.agent_panel = (config, error)

    def enable_input(self):
        self.events.append("enable_input")
        self.input_enabled = True

    async def confirm(self, message):
        self.confirm_messages.append(message)
        return self.confirm_answers.pop(0) if self.confirm_answers else True

    async def prompt(self, message):
        return self.prompt_answers.pop(0) if self.prompt_answers else None


class FakeSession(Session):
    def __init__(self) -> None:
        self.active: AgentConfig | None = None
        self.chat: ChatSession | None = None
        self.loaded: list[str] = []
        self.cleared = 0
        self.sent: list[tuple[str, str | None, str]] = []
        self.send_error: Exception | None = None
        # Called with (text, credential, chat_path) when send starts.
        self.on_send = None
        # When set, send waits for it before returning.
        self.reply_gate: asyncio.Event | None = None

    async def send(self, text, credential, chat_path):
        if self.on_send is not None:
            self.on_send(text, credential, chat_path)
        self.sent.append((text, credential, chat_path))
        if self.reply_gate is not None:
            await self.reply_gate.wait()
        if self.send_error is not None:
            raise self.send_error

    def load_into(self, entry):
        self.chat = ChatSession.from_json(entry.content, entry.path)
        self.loaded.append(entry.path)

    def clear(self):
        self.chat = None
        self.cleared += 1

    def get_active_config(self):
        return self.active

    def set_active_config(self, config):
        self.active = config


class CountingStore(EntryStore):
    """EntryStore that counts listings and can fail chosen paths."""

    def __init__(self, db_path) -> None:
        super().__init__(db_path)
        self.list_calls: list[str] = []
        self.fail_list: set[str] = set()
        self.fail_open = False
        # Listings of these directories wait for their event.
        self.held_lists: dict[str, asyncio.Event] = {}

    async def open(self) -> None:
        if self.fail_open:
            raise StoreError("open", str(self.db_path), "disk I/O error")
        await super().open()

    async def list(self, path):
        self.list_calls.append(path)
        if path in self.fail_list:
            raise StoreError("list", path, "unreachable")
        if path in self.held_lists:
            await self.held_lists[path].wait()
        return await super().list(path)


@dataclass
class Workspace:
    store: CountingStore
    view: RecordingView
    session: FakeSession
    controller: WorkspaceController
    config: WorkspaceConfig

    async def open(self, directory: str = ROOT) -> None:
        await self.store.open()
        await self.controller.navigator.list_directory(directory)

    async def text(self, path: str) -> str | None:
        entry = await self.store.get(path)
        return entry.content if entry is not None else None


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    config = WorkspaceConfig(
        db_path=tmp_path / "workspace.sqlite3",
        export_dir=tmp_path / "exports",
    )
    store = CountingStore(config.db_path)
    view = RecordingView()
    session = FakeSession()
    controller = WorkspaceController(
        store,
        view,
        session,
        config=config,
        exporter=SourceExporter(config.export_dir),
        source_reader=lambda rel: f"# {rel}\n",
    )
    return Workspace(store, view, session, controller, config)


@pytest.fixture
def agent_json() -> str:
    return (
        '{"id": "agent-1", "name": "Helper", '
        '"configurations": {"model": "openai/gpt-4o-mini", "temperature": 0.2}}'
    )
