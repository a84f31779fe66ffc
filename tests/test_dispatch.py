"""Session dispatch — chat entry creation, credential lookup, agent fallback."""

from __future__ import annotations

import asyncio

import pytest

from atelier.engine.dispatch import NO_AGENT_MESSAGE
from atelier.engine.errors import ChatTransportError, StoreError
from atelier.engine.interfaces import NoticeLevel
from atelier.engine.models import AgentConfig


def _config(model: str = "openai/gpt-4o-mini") -> AgentConfig:
    return AgentConfig(id="a1", name="Helper", configurations={"model": model})


async def _chat_paths(ws) -> list[str]:
    try:
        entries = await ws.store.list("/chats/")
    except StoreError:
        return []
    return [e.path for e in entries]


async def _until(condition, attempts: int = 100) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_message_is_rejected(workspace, text):
    await workspace.open()
    workspace.session.active = _config()

    assert await workspace.controller.send(text) is False

    assert workspace.session.sent == []
    assert await _chat_paths(workspace) == []
    assert workspace.view.notices_at(NoticeLevel.WARNING)


@pytest.mark.asyncio
async def test_send_creates_and_selects_chat_before_sending(workspace):
    await workspace.open()
    workspace.session.active = _config()
    seen = {}

    def on_send(text, credential, chat_path):
        seen["selected"] = workspace.controller.state.selected_path
        seen["loaded"] = list(workspace.session.loaded)
        seen["busy"] = workspace.controller.is_busy(chat_path)

    workspace.session.on_send = on_send

    assert await workspace.controller.send("hello") is True

    chats = await _chat_paths(workspace)
    assert len(chats) == 1
    chat_path = chats[0]
    assert chat_path.startswith("/chats/chat_") and chat_path.endswith(".json")
    assert workspace.session.sent == [("hello", None, chat_path)]
    assert seen == {"selected": chat_path, "loaded": [chat_path], "busy": True}
    assert workspace.controller.state.selected_path == chat_path
    assert not workspace.controller.is_busy(chat_path)


@pytest.mark.asyncio
async def test_send_clears_input_and_reports_processed(workspace):
    await workspace.open()
    workspace.session.active = _config()
    workspace.controller.on_edit("hello")

    await workspace.controller.send()

    assert workspace.session.sent[0][0] == "hello"
    assert workspace.view.editor_text == ""
    assert workspace.controller.state.edited_text == ""
    assert workspace.controller.state.is_dirty is False
    assert workspace.view.status == "Message processed"
    assert workspace.view.buttons == (True, False, False)


@pytest.mark.asyncio
async def test_send_reuses_selected_chat(workspace):
    await workspace.store.open()
    await workspace.store.put("/chats/c.json", '{"id": "c", "messages": []}')
    await workspace.controller.navigator.list_directory("/chats/")
    await workspace.controller.open_entry("/chats/c.json")
    workspace.session.active = _config()

    await workspace.controller.send("again")

    assert await _chat_paths(workspace) == ["/chats/c.json"]
    assert workspace.session.sent == [("again", None, "/chats/c.json")]


@pytest.mark.asyncio
async def test_new_chat_refreshes_root_listing(workspace):
    await workspace.open()
    workspace.session.active = _config()

    await workspace.controller.send("hello")

    root_children = [n.name for n in workspace.view.tree.children(0)]
    assert "chats" in root_children


@pytest.mark.asyncio
async def test_send_uses_last_agent_config_when_none_active(workspace, agent_json):
    await workspace.store.open()
    await workspace.store.put("/agents/helper.json", agent_json)
    await workspace.controller.navigator.list_directory("/agents/")
    await workspace.controller.open_entry("/agents/helper.json")
    last = workspace.controller.state.last_agent_config
    workspace.session.active = None

    assert await workspace.controller.send("hello") is True

    assert workspace.session.active == last
    assert workspace.view.agent_panel == (last, None)
    assert any("last loaded agent" in m for m in workspace.view.notices_at(NoticeLevel.INFO))
    assert len(workspace.session.sent) == 1


@pytest.mark.asyncio
async def test_send_without_any_agent_aborts_after_creating_chat(workspace):
    await workspace.open()

    assert await workspace.controller.send("hello") is False

    # The chat entry is created before the agent check and is kept.
    assert len(await _chat_paths(workspace)) == 1
    assert workspace.session.sent == []
    assert NO_AGENT_MESSAGE in workspace.view.notices_at(NoticeLevel.ERROR)
    state = workspace.controller.state
    assert workspace.view.buttons == (state.has_selection, state.is_dirty, state.has_text)
    # The pending message stays in the chat input.
    assert workspace.view.editor_text == "hello"


@pytest.mark.asyncio
async def test_credential_read_from_top_level_key(workspace):
    await workspace.store.open()
    await workspace.store.put(
        "/secrets/api_keys.json", '{"id": "s", "service": "x", "vsegpt": "top-key"}'
    )
    await workspace.controller.navigator.list_directory("/")
    workspace.session.active = _config()

    await workspace.controller.send("hi")

    assert workspace.session.sent[0][1] == "top-key"


@pytest.mark.asyncio
async def test_credential_read_from_data_mapping(workspace):
    await workspace.store.open()
    await workspace.store.put(
        "/secrets/api_keys.json",
        '{"id": "s", "service": "VseGPT", "data": {"vsegpt": "nested-key"}}',
    )
    await workspace.controller.navigator.list_directory("/")
    workspace.session.active = _config()

    await workspace.controller.send("hi")

    assert workspace.session.sent[0][1] == "nested-key"


@pytest.mark.asyncio
async def test_unreadable_secrets_do_not_abort_send(workspace):
    await workspace.store.open()
    await workspace.store.put("/secrets/api_keys.json", "{not json")
    await workspace.controller.navigator.list_directory("/")
    workspace.session.active = _config()

    assert await workspace.controller.send("hi") is True

    assert workspace.session.sent[0][1] is None


@pytest.mark.asyncio
async def test_session_failure_is_reported_and_buttons_recomputed(workspace):
    await workspace.open()
    workspace.session.active = _config()
    workspace.session.send_error = ChatTransportError("boom", 502)

    assert await workspace.controller.send("hello") is False

    errors = workspace.view.notices_at(NoticeLevel.ERROR)
    assert errors and "HTTP 502" in errors[-1]
    state = workspace.controller.state
    assert workspace.view.buttons == (state.has_selection, state.is_dirty, state.has_text)
    assert workspace.view.buttons[2] is True


@pytest.mark.asyncio
async def test_send_rejected_while_chat_busy(workspace):
    await workspace.store.open()
    await workspace.store.put("/chats/c.json", '{"id": "c", "messages": []}')
    await workspace.controller.navigator.list_directory("/chats/")
    await workspace.controller.open_entry("/chats/c.json")
    workspace.session.active = _config()

    with workspace.controller.claim("/chats/c.json", "send"):
        assert await workspace.controller.send("hello") is False

    assert workspace.session.sent == []


@pytest.mark.asyncio
async def test_unexpected_session_error_is_reported(workspace):
    await workspace.open()
    workspace.session.active = _config()
    workspace.session.send_error = RuntimeError("modal closed")

    assert await workspace.controller.send("hello") is False

    errors = workspace.view.notices_at(NoticeLevel.ERROR)
    assert errors and "RuntimeError" in errors[-1]
    state = workspace.controller.state
    assert workspace.view.buttons == (state.has_selection, state.is_dirty, state.has_text)
    assert not workspace.controller.is_busy(workspace.session.sent[0][2])


@pytest.mark.asyncio
async def test_reply_after_switching_entry_keeps_new_edits(workspace):
    await workspace.store.open()
    await workspace.store.put("/chats/c.json", '{"id": "c", "messages": []}')
    await workspace.store.put("/notes.txt", "notes\n")
    await workspace.controller.navigator.list_directory("/")
    await workspace.controller.open_entry("/chats/c.json")
    workspace.session.active = _config()
    gate = asyncio.Event()
    workspace.session.reply_gate = gate

    pending = asyncio.create_task(workspace.controller.send("hello"))
    await _until(lambda: workspace.session.sent)
    assert await workspace.controller.open_entry("/notes.txt") is True
    workspace.view.set_editor_text("my unsaved edit")
    workspace.controller.on_edit("my unsaved edit")
    gate.set()

    assert await pending is True

    state = workspace.controller.state
    assert state.selected_path == "/notes.txt"
    assert state.is_dirty is True
    assert state.edited_text == "my unsaved edit"
    assert workspace.view.editor_text == "my unsaved edit"
    assert workspace.view.status != "Message processed"
    assert workspace.view.buttons == (True, True, True)


@pytest.mark.asyncio
async def test_new_chat_declined_keeps_unsaved_edits(workspace):
    await workspace.store.open()
    await workspace.store.put("/notes.txt", "notes\n")
    await workspace.controller.navigator.list_directory("/")
    await workspace.controller.open_entry("/notes.txt")
    workspace.controller.on_edit("edited notes")
    workspace.session.active = _config()
    workspace.view.confirm_answers = [False]

    assert await workspace.controller.send("hello") is False

    assert len(workspace.view.confirm_messages) == 1
    assert await _chat_paths(workspace) == []
    assert workspace.session.sent == []
    state = workspace.controller.state
    assert state.selected_path == "/notes.txt"
    assert state.is_dirty is True
    assert state.edited_text == "edited notes"


@pytest.mark.asyncio
async def test_new_chat_confirmed_asks_only_once(workspace):
    await workspace.store.open()
    await workspace.store.put("/notes.txt", "notes\n")
    await workspace.controller.navigator.list_directory("/")
    await workspace.controller.open_entry("/notes.txt")
    workspace.controller.on_edit("edited notes")
    workspace.session.active = _config()
    workspace.view.confirm_answers = [True]

    assert await workspace.controller.send("hello") is True

    assert len(workspace.view.confirm_messages) == 1
    (chat_path,) = await _chat_paths(workspace)
    assert workspace.controller.state.selected_path == chat_path
    assert workspace.session.sent == [("hello", None, chat_path)]
    assert await workspace.text("/notes.txt") == "notes\n"
