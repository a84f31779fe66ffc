"""Bootstrap sequence."""

from __future__ import annotations

import json

import pytest

from atelier.engine.bootstrap import EXAMPLE_AGENT_PATH, SEEDED_MODULES
from atelier.engine.interfaces import PERSISTENT, NoticeLevel
from atelier.engine.models import AgentConfig
from atelier.engine.tree import NodeState


@pytest.mark.asyncio
async def test_start_seeds_workspace_and_lists_root(workspace):
    assert await workspace.controller.start() is True

    names = [n.name for n in workspace.view.tree.children(0)]
    assert names == ["agents", "backup", "chats", "js", "secrets"]
    seeded = {e.name for e in await workspace.store.list("/js/")}
    assert seeded == {m.rsplit("/", 1)[-1] for m in SEEDED_MODULES}
    assert await workspace.text("/js/dispatch.py") == "# engine/dispatch.py\n"
    example = AgentConfig.parse(await workspace.text(EXAMPLE_AGENT_PATH))
    assert example.model == workspace.config.default_agent_model


@pytest.mark.asyncio
async def test_input_enabled_only_after_seeding(workspace):
    await workspace.controller.start()

    assert workspace.view.events == ["enable_input", "render:/"]


@pytest.mark.asyncio
async def test_start_keeps_existing_example_agent(workspace):
    custom = json.dumps({"name": "Mine", "configurations": {"model": "x/y"}})
    await workspace.store.open()
    await workspace.store.put(EXAMPLE_AGENT_PATH, custom)

    await workspace.controller.start()

    assert await workspace.text(EXAMPLE_AGENT_PATH) == custom


@pytest.mark.asyncio
async def test_seeding_continues_past_a_failing_module(workspace):
    def reader(relative):
        if relative.endswith("navigator.py"):
            raise FileNotFoundError(relative)
        return "# ok\n"

    workspace.controller.bootstrapper._read_source = reader

    assert await workspace.controller.start() is True

    seeded = {e.name for e in await workspace.store.list("/js/")}
    assert "navigator.py" not in seeded
    assert "lifecycle.py" in seeded and "store.py" in seeded
    errors = workspace.view.notices_at(NoticeLevel.ERROR)
    assert len(errors) == 1 and "navigator.py" in errors[0]
    assert workspace.view.input_enabled is True


@pytest.mark.asyncio
async def test_seeding_can_be_disabled(workspace):
    workspace.config.seed_sources = False

    await workspace.controller.start()

    assert await workspace.store.list("/js/") == []


@pytest.mark.asyncio
async def test_storage_open_failure_is_fatal(workspace):
    workspace.store.fail_open = True

    assert await workspace.controller.start() is False

    message, level, duration = workspace.view.notices[-1]
    assert level is NoticeLevel.ERROR and duration == PERSISTENT
    assert "disk I/O error" in message
    assert workspace.view.tree.root.state is NodeState.ERROR
    assert workspace.view.input_enabled is False
    assert workspace.store.list_calls == []
