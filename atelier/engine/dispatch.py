"""Session dispatch — sending a chat message from the edit surface.

Order of a dispatch:
1. reject empty text
2. make sure a chat entry is selected, creating one under /chats/ if not
3. read the credential from the secrets entry (absence is fine)
4. resolve the agent configuration, falling back to the last valid one
5. hand the message to the session
6. clear the edit surface
"""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from atelier.engine.errors import PreconditionError, StoreError, WorkspaceError
from atelier.engine.interfaces import NoticeLevel
from atelier.engine.models import AgentConfig, ChatSession
from atelier.engine.paths import CHATS_DIR, ROOT, SECRETS_PATH, get_name, new_chat_path
from atelier.engine.state import message_sent

if TYPE_CHECKING:
    from atelier.engine.controller import WorkspaceController

logger = logging.getLogger(__name__)

NO_AGENT_MESSAGE = (
    "Please load an agent configuration first (e.g., /agents/example-agent.json)."
)


class SessionDispatcher:
    def __init__(self, controller: WorkspaceController) -> None:
        self._c = controller

    async def dispatch(self, text: str | None = None) -> bool:
        c = self._c
        view = c.view
        message = (c.state.edited_text if text is None else text).strip()
        if not message:
            view.show_notice("Enter a message to send.", NoticeLevel.WARNING, 1.5)
            return False

        try:
            chat_path = await self._ensure_chat_entry(message)
            if chat_path is None:
                return False
            with c.claim(chat_path, "send"):
                credential = await self.read_credential()
                self._resolve_agent_config()
                view.set_button_states(c.state.has_selection, c.state.is_dirty, False)
                await c.session.send(message, credential, chat_path)
        except PreconditionError as exc:
            logger.info("Send aborted: %s", exc)
            view.show_notice(str(exc), NoticeLevel.ERROR, 4.0)
            return False
        except WorkspaceError as exc:
            logger.exception("Send failed")
            view.show_notice(f"Send failed: {exc}", NoticeLevel.ERROR)
            return False
        except Exception as exc:
            logger.exception("Unexpected error while sending to %s", c.state.selected_path)
            view.show_notice(f"Send failed: {type(exc).__name__}: {exc}", NoticeLevel.ERROR)
            return False
        finally:
            c.refresh_buttons()

        if c.state.selected_path != chat_path:
            # Another entry was opened while the reply was pending; its edits stay.
            logger.info("Chat %s no longer selected; input left untouched", chat_path)
            return True
        view.set_editor_text("")
        c.state = message_sent(c.state)
        view.set_status("Message processed")
        c.refresh_buttons()
        return True

    async def _ensure_chat_entry(self, message: str) -> str | None:
        """Path of the selected chat entry, creating and loading one if needed.

        Returns None when the user keeps unsaved edits of the open entry.
        """
        c = self._c
        if c.state.is_chat_selected:
            return c.state.selected_path
        if not await c.lifecycle.confirm_discard():
            logger.info("Send cancelled: unsaved changes kept")
            return None

        path = new_chat_path()
        c.view.show_notice("Creating a new chat…", NoticeLevel.INFO, 1.5)
        try:
            await c.store.ensure_directory(CHATS_DIR)
        except StoreError as exc:
            logger.warning("Could not ensure %s exists: %s", CHATS_DIR, exc)
        await c.store.put(path, ChatSession.new().to_json())
        logger.info("Created chat entry %s", path)
        c.view.show_notice(f"New chat {get_name(path)} created.", NoticeLevel.SUCCESS, 2.0)

        if c.state.current_directory in (ROOT, CHATS_DIR):
            await c.navigator.list_directory(c.state.current_directory)
        if not await c.lifecycle.load(path, confirm=False):
            raise PreconditionError(f"Could not open the new chat entry {path}.")
        # Keep the pending message visible in the chat input.
        c.view.set_editor_text(message)
        c.lifecycle.on_edit(message)
        return path

    async def read_credential(self) -> str | None:
        """API key from the secrets entry, or None when unavailable."""
        c = self._c
        key = c.config.credential_key
        try:
            entry = await c.store.get(SECRETS_PATH)
        except StoreError as exc:
            logger.warning("Error reading %s: %s", SECRETS_PATH, exc)
            return None
        if entry is None:
            logger.info("%s not found; the session will ask for a key", SECRETS_PATH)
            return None
        try:
            data = json.loads(entry.content or "")
        except json.JSONDecodeError as exc:
            logger.warning("Cannot parse %s: %s", SECRETS_PATH, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("%s is not a JSON object", SECRETS_PATH)
            return None

        value = data.get(key)
        nested = data.get("data")
        if not value and isinstance(nested, dict):
            value = nested.get(key)
        return str(value) if value else None

    def _resolve_agent_config(self) -> AgentConfig:
        c = self._c
        config = c.session.get_active_config()
        if config is None and c.state.last_agent_config is not None:
            config = c.state.last_agent_config
            c.session.set_active_config(config)
            c.view.show_agent_config_panel(config)
            c.view.show_notice(
                f"Using the last loaded agent configuration: {config.display_name}",
                NoticeLevel.INFO,
                2.5,
            )
        if config is None:
            raise PreconditionError(NO_AGENT_MESSAGE)
        return config
