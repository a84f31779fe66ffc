"""Headless checks of the main screen wiring."""

from __future__ import annotations

import pytest
from textual.widgets import Button, TextArea

from atelier.engine.bootstrap import EXAMPLE_AGENT_PATH
from atelier.engine.config import WorkspaceConfig
from atelier.tui.app import AtelierApp
from atelier.tui.widgets.agent_panel import AgentConfigPanel
from atelier.tui.widgets.status_bar import StatusBar
from atelier.tui.widgets.workspace_tree import WorkspaceTreeView


async def _wait_for(pilot, condition, attempts: int = 100) -> None:
    for _ in range(attempts):
        if condition():
            return
        await pilot.pause(0.05)
    raise AssertionError("condition not reached")


@pytest.fixture
def config(tmp_path) -> WorkspaceConfig:
    return WorkspaceConfig(
        db_path=tmp_path / "workspace.sqlite3",
        export_dir=tmp_path / "exports",
        seed_sources=False,
    )


@pytest.mark.asyncio
async def test_startup_renders_workspace_root(config):
    app = AtelierApp(config)
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for(pilot, lambda: getattr(app.screen, "input_enabled", False))
        screen = app.screen
        tree = screen.query_one(WorkspaceTreeView)
        await _wait_for(pilot, lambda: len(tree.root.children) == 5)

        labels = [str(node.label) for node in tree.root.children]
        assert [label.rstrip("/") for label in labels] == [
            "agents", "backup", "chats", "js", "secrets",
        ]
        assert screen.query_one(StatusBar).directory == "/"
        assert screen.query_one("#btn-save", Button).disabled
        assert screen.query_one("#btn-delete", Button).disabled


@pytest.mark.asyncio
async def test_opening_agent_shows_panel_and_edit_enables_save(config):
    app = AtelierApp(config)
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for(pilot, lambda: getattr(app.screen, "input_enabled", False))
        screen = app.screen
        controller = screen.controller
        tree = screen.query_one(WorkspaceTreeView)
        await _wait_for(pilot, lambda: len(tree.root.children) == 5)

        screen._navigate("/agents/")
        await _wait_for(pilot, lambda: controller.state.current_directory == "/agents/")
        screen._open(EXAMPLE_AGENT_PATH)
        await _wait_for(pilot, lambda: controller.state.selected_path == EXAMPLE_AGENT_PATH)
        await _wait_for(pilot, lambda: controller.state.last_agent_config is not None)

        panel = screen.query_one(AgentConfigPanel)
        assert panel.has_class("visible")
        assert screen.query_one(StatusBar).agent_name == "Example Agent"
        assert screen.query_one("#btn-delete", Button).disabled is False
        assert screen.query_one("#btn-save", Button).disabled is True

        editor = screen.query_one("#editor", TextArea)
        editor.insert(" ")
        await _wait_for(pilot, lambda: controller.state.is_dirty)

        assert screen.query_one("#btn-save", Button).disabled is False
