"""Atelier TUI — Textual application class."""

from __future__ import annotations

from pathlib import Path

from textual.app import App

from atelier.engine.config import WorkspaceConfig
from atelier.tui.screens.main import MainScreen


class AtelierApp(App):
    """Terminal workspace for files, agent configurations and chats."""

    TITLE = "Atelier"
    SUB_TITLE = "Workspace"
    CSS_PATH = Path("styles/app.tcss")

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("escape", "blur", "Unfocus"),
    ]

    def __init__(self, config: WorkspaceConfig | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.config = config or WorkspaceConfig()
        self.sub_title = str(self.config.db_path)

    def on_mount(self) -> None:
        self.push_screen(MainScreen(self.config))

    def action_blur(self) -> None:
        self.screen.set_focus(None)
