"""Main screen — tree, editor, agent panel and chat transcript."""

from __future__ import annotations

import logging

from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Header, TextArea, Tree

from atelier.engine.config import WorkspaceConfig
from atelier.engine.controller import WorkspaceController
from atelier.engine.interfaces import NoticeLevel, View
from atelier.engine.models import AgentConfig, ChatSession, Entry
from atelier.engine.paths import ROOT, get_directory
from atelier.engine.state import button_states
from atelier.engine.tree import TreeNode, WorkspaceTree
from atelier.shared.services.chat_client import ChatCompletionClient
from atelier.shared.services.chat_session import ChatSessionService
from atelier.shared.services.export import SourceExporter
from atelier.shared.services.store import EntryStore
from atelier.tui.screens.confirm import ConfirmScreen
from atelier.tui.screens.prompt import PromptScreen
from atelier.tui.widgets.agent_panel import AgentConfigPanel
from atelier.tui.widgets.status_bar import StatusBar
from atelier.tui.widgets.transcript import TranscriptView
from atelier.tui.widgets.workspace_tree import WorkspaceTreeView

logger = logging.getLogger(__name__)

_SEVERITY = {
    NoticeLevel.INFO: "information",
    NoticeLevel.SUCCESS: "information",
    NoticeLevel.WARNING: "warning",
    NoticeLevel.ERROR: "error",
}

# Textual needs a finite timeout; a day is effectively "until dismissed".
_PERSISTENT_TIMEOUT = 24 * 60 * 60.0


class ScreenView(View):
    """View implementation backed by the main screen's widgets."""

    def __init__(self, screen: MainScreen) -> None:
        self._screen = screen

    def render_tree(self, tree: WorkspaceTree) -> None:
        self._screen.query_one(WorkspaceTreeView).show_workspace(tree)
        self._screen.query_one(StatusBar).directory = tree.root.path

    def set_loading(self, loading: bool, message: str | None = None) -> None:
        self._screen.query_one(WorkspaceTreeView).loading = loading
        self._screen.query_one(StatusBar).loading = (message or "Loading…") if loading else ""

    def show_notice(
        self,
        message: str,
        level: NoticeLevel = NoticeLevel.INFO,
        duration: float = 3.0,
    ) -> None:
        timeout = duration if duration > 0 else _PERSISTENT_TIMEOUT
        title = "Done" if level is NoticeLevel.SUCCESS else ""
        self._screen.app.notify(
            message, title=title, severity=_SEVERITY[level], timeout=timeout
        )

    def show_editor(self, entry: Entry | None) -> None:
        editor = self._screen.query_one("#editor", TextArea)
        editor.load_text((entry.content or "") if entry is not None else "")
        editor.border_title = entry.path if entry is not None else "No entry selected"

    def set_editor_text(self, text: str) -> None:
        self._screen.query_one("#editor", TextArea).load_text(text)

    def set_status(self, text: str) -> None:
        bar = self._screen.query_one(StatusBar)
        bar.status = text
        bar.dirty = self._screen.controller.state.is_dirty

    def set_button_states(self, has_selection: bool, is_dirty: bool, has_text: bool) -> None:
        states = button_states(has_selection, is_dirty, has_text)
        screen = self._screen
        screen.query_one("#btn-save", Button).disabled = not states.save
        screen.query_one("#btn-delete", Button).disabled = not states.delete
        screen.query_one("#btn-send", Button).disabled = not states.send
        screen.query_one(StatusBar).dirty = is_dirty

    def show_agent_config_panel(
        self, config: AgentConfig | None, error: str | None = None
    ) -> None:
        self._screen.query_one(AgentConfigPanel).show_config(config, error)
        active = self._screen.chat.get_active_config()
        self._screen.query_one(StatusBar).agent_name = (
            active.display_name if active is not None else "No agent"
        )

    def enable_input(self) -> None:
        self._screen.input_enabled = True
        self._screen.query_one(WorkspaceTreeView).focus()

    async def confirm(self, message: str) -> bool:
        return bool(await self._screen.app.push_screen_wait(ConfirmScreen(message)))

    async def prompt(self, message: str) -> str | None:
        return await self._screen.app.push_screen_wait(PromptScreen(message))


class MainScreen(Screen):
    """Primary workspace screen."""

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("ctrl+n", "new_entry", "New"),
        ("f4", "go_up", "Up"),
        ("f5", "refresh", "Refresh"),
        ("f6", "send", "Send"),
        ("f8", "delete_entry", "Delete"),
        ("ctrl+t", "focus_tree", "Tree"),
        ("f3", "focus_editor", "Editor"),
    ]

    def __init__(self, config: WorkspaceConfig, **kwargs) -> None:
        super().__init__(**kwargs)
        self.config = config
        self.input_enabled = False
        self.store = EntryStore(config.db_path)
        client = ChatCompletionClient(config.api_base, config.request_timeout_seconds)
        self.view = ScreenView(self)
        self.chat = ChatSessionService(
            self.store,
            client,
            credential_prompt=self._ask_api_key,
            on_transcript=self._show_transcript,
            on_notice=lambda message: self.view.show_notice(message, NoticeLevel.WARNING),
        )
        self.controller = WorkspaceController(
            self.store,
            self.view,
            self.chat,
            config=config,
            exporter=SourceExporter(config.export_dir),
        )

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="workspace"):
            yield WorkspaceTreeView(id="workspace-tree")
            with Vertical(id="main-pane"):
                yield AgentConfigPanel(id="agent-panel")
                yield TranscriptView(id="transcript")
                yield TextArea(id="editor")
                with Horizontal(id="actions"):
                    yield Button("Save", id="btn-save", variant="primary", disabled=True)
                    yield Button("Delete", id="btn-delete", variant="error", disabled=True)
                    yield Button("Send", id="btn-send", variant="success", disabled=True)
                    yield Button("New", id="btn-new")
                    yield Button("Up", id="btn-up")
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        self.query_one("#editor", TextArea).border_title = "No entry selected"
        self._start()

    # ── collaborators ───────────────────────────────────────────────

    async def _ask_api_key(self) -> str | None:
        value = await self.app.push_screen_wait(
            PromptScreen(
                "API key for the chat service\n"
                "(store it in /secrets/api_keys.json to skip this prompt)",
                password=True,
            )
        )
        value = (value or "").strip()
        return value or None

    def _show_transcript(self, chat: ChatSession | None) -> None:
        self.query_one(TranscriptView).show_chat(chat)

    def _ready(self) -> bool:
        if not self.input_enabled:
            self.app.notify("The workspace is still starting.", severity="warning", timeout=1.5)
        return self.input_enabled

    def _is_current(self, model: TreeNode | None) -> bool:
        return model is not None and self.controller.tree.find(model.path) is model

    # ── workers ─────────────────────────────────────────────────────

    @work(name="bootstrap")
    async def _start(self) -> None:
        await self.controller.start()

    @work(group="entry", name="navigate")
    async def _navigate(self, directory: str) -> None:
        await self.controller.navigate(directory)

    @work(group="entry", name="open")
    async def _open(self, path: str) -> None:
        await self.controller.open_entry(path)

    @work(group="tree", name="expand")
    async def _expand(self, node_id: int) -> None:
        await self.controller.expand(node_id)

    @work(group="entry", name="save")
    async def _save(self, text: str) -> None:
        await self.controller.save(text)

    @work(group="entry", name="create")
    async def _create(self) -> None:
        await self.controller.create()

    @work(group="entry", name="delete")
    async def _delete(self) -> None:
        await self.controller.delete()

    @work(group="entry", name="send")
    async def _send(self, text: str) -> None:
        await self.controller.send(text)

    @work(group="entry", name="refresh")
    async def _refresh(self) -> None:
        await self.controller.refresh()

    # ── events ──────────────────────────────────────────────────────

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        model = event.node.data
        if event.node.is_root or not self._is_current(model) or not self._ready():
            return
        if model.is_directory:
            self._navigate(model.path)
        else:
            self._open(model.path)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        model = event.node.data
        # Rebuilds re-expand nodes the model already has open.
        if not self._is_current(model) or model.expanded:
            return
        self._expand(model.id)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        model = event.node.data
        if not self._is_current(model) or not model.expanded:
            return
        self.controller.collapse(model.id)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        text = event.text_area.text
        # Programmatic loads echo back here with the text the state already holds.
        if text == self.controller.state.edited_text:
            return
        self.controller.on_edit(text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {
            "btn-save": self.action_save,
            "btn-delete": self.action_delete_entry,
            "btn-send": self.action_send,
            "btn-new": self.action_new_entry,
            "btn-up": self.action_go_up,
        }
        action = actions.get(event.button.id or "")
        if action is not None:
            action()

    # ── actions ─────────────────────────────────────────────────────

    def action_save(self) -> None:
        if self._ready():
            self._save(self.query_one("#editor", TextArea).text)

    def action_new_entry(self) -> None:
        if self._ready():
            self._create()

    def action_delete_entry(self) -> None:
        if self._ready():
            self._delete()

    def action_send(self) -> None:
        if self._ready():
            self._send(self.query_one("#editor", TextArea).text)

    def action_refresh(self) -> None:
        if self._ready():
            self._refresh()

    def action_go_up(self) -> None:
        current = self.controller.state.current_directory
        if current != ROOT and self._ready():
            self._navigate(get_directory(current))

    def action_focus_tree(self) -> None:
        self.query_one(WorkspaceTreeView).focus()

    def action_focus_editor(self) -> None:
        self.query_one("#editor", TextArea).focus()
