"""Chat session runtime — active transcript and active agent configuration.

Transcripts are ordinary JSON entries under /chats/; every message
appended here is written back through the store immediately, so the
entry in the tree always reflects the conversation.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from atelier.engine.errors import PreconditionError
from atelier.engine.interfaces import Session, Store
from atelier.engine.models import AgentConfig, ChatSession, Entry
from atelier.shared.services.chat_client import ChatCompletionClient

logger = logging.getLogger(__name__)

# Asks the user for an API key; returns None when cancelled.
CredentialPrompt = Callable[[], Awaitable[str | None]]
TranscriptListener = Callable[[ChatSession | None], None]
NoticeListener = Callable[[str], None]


class ChatSessionService(Session):
    """Holds the open chat transcript and drives completion requests."""

    def __init__(
        self,
        store: Store,
        client: ChatCompletionClient,
        *,
        credential_prompt: CredentialPrompt | None = None,
        on_transcript: TranscriptListener | None = None,
        on_notice: NoticeListener | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._credential_prompt = credential_prompt
        self._on_transcript = on_transcript
        self._on_notice = on_notice
        self._active_config: AgentConfig | None = None
        self._chat: ChatSession | None = None
        self._chat_path: str | None = None

    @property
    def chat(self) -> ChatSession | None:
        return self._chat

    @property
    def chat_path(self) -> str | None:
        return self._chat_path

    def _emit(self) -> None:
        if self._on_transcript is not None:
            self._on_transcript(self._chat)

    # ── Session interface ───────────────────────────────────────────

    def load_into(self, entry: Entry) -> None:
        self._chat = ChatSession.from_json(entry.content, entry.path)
        self._chat_path = entry.path
        logger.debug("Loaded chat %s (%d messages)", entry.path, len(self._chat.messages))
        self._emit()

    def clear(self) -> None:
        if self._chat is None and self._chat_path is None:
            return
        self._chat = None
        self._chat_path = None
        self._emit()

    def get_active_config(self) -> AgentConfig | None:
        return self._active_config

    def set_active_config(self, config: AgentConfig | None) -> None:
        self._active_config = config

    async def send(self, text: str, credential: str | None, chat_path: str) -> None:
        config = self._active_config
        if config is None:
            raise PreconditionError("No active agent configuration.")

        if not credential and self._credential_prompt is not None:
            credential = await self._credential_prompt()
        if not credential:
            logger.info("Send to %s skipped: no API key provided", chat_path)
            if self._on_notice is not None:
                self._on_notice("An API key is required to send messages.")
            return

        chat = await self._chat_for(chat_path)
        chat.add_message("user", text)
        await self._store.put(chat_path, chat.to_json())
        self._emit()

        reply = await self._client.complete(config, chat.messages, credential)
        chat.add_message("assistant", reply)
        await self._store.put(chat_path, chat.to_json())
        self._emit()
        logger.info("Chat %s now has %d messages", chat_path, len(chat.messages))

    async def _chat_for(self, chat_path: str) -> ChatSession:
        if self._chat is not None and self._chat_path == chat_path:
            return self._chat
        entry = await self._store.get(chat_path)
        chat = ChatSession.from_json(entry.content, chat_path) if entry else ChatSession.new()
        self._chat = chat
        self._chat_path = chat_path
        return chat
