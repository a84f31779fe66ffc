"""Core data models: entries, agent configurations, chat sessions."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from atelier.engine.errors import AgentConfigError, ChatFormatError
from atelier.engine.paths import generate_id, get_name, utcnow


class EntryType(Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Entry:
    """A path-keyed unit of persisted data."""

    path: str
    type: EntryType
    content: str | None = None
    timestamp: datetime | None = None

    @property
    def name(self) -> str:
        return get_name(self.path)

    @property
    def is_directory(self) -> bool:
        return self.type is EntryType.DIRECTORY


@dataclass(frozen=True)
class AgentConfig:
    """Validated agent configuration: an id, a name and model settings."""

    id: str | None
    name: str | None
    configurations: dict[str, Any]
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def model(self) -> str:
        return str(self.configurations["model"])

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed"

    @classmethod
    def parse(cls, content: str | None, path: str | None = None) -> AgentConfig:
        """Parse and validate agent JSON.

        Raises AgentConfigError when the text is not JSON, the value is
        not an object, or ``configurations.model`` is missing.
        """
        try:
            data = json.loads(content or "")
        except json.JSONDecodeError as exc:
            raise AgentConfigError(f"Invalid JSON: {exc.msg}", path) from exc
        if not isinstance(data, dict):
            raise AgentConfigError("Agent configuration must be a JSON object", path)
        configurations = data.get("configurations")
        if not isinstance(configurations, dict) or not configurations.get("model"):
            raise AgentConfigError("Invalid agent structure or missing model.", path)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            configurations=dict(configurations),
            raw=data,
        )

    @staticmethod
    def default_document(model: str) -> dict[str, Any]:
        return {
            "id": generate_id(),
            "name": "New Agent",
            "configurations": {"model": model},
        }


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        ts = data.get("timestamp")
        try:
            timestamp = datetime.fromisoformat(ts) if ts else utcnow()
        except (TypeError, ValueError):
            timestamp = utcnow()
        return cls(
            role=str(data.get("role", "user")),
            content=str(data.get("content", "")),
            timestamp=timestamp,
        )


@dataclass
class ChatSession:
    """A chat transcript stored as a JSON entry under /chats/."""

    id: str = field(default_factory=generate_id)
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def new(cls) -> ChatSession:
        return cls()

    def add_message(self, role: str, content: str) -> ChatMessage:
        msg = ChatMessage(role=role, content=content)
        self.messages.append(msg)
        return msg

    def to_json(self) -> str:
        return json.dumps(
            {"id": self.id, "messages": [m.to_dict() for m in self.messages]},
            indent=2,
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, content: str | None, path: str | None = None) -> ChatSession:
        try:
            data = json.loads(content or "")
        except json.JSONDecodeError as exc:
            raise ChatFormatError(path, exc.msg) from exc
        if not isinstance(data, dict):
            raise ChatFormatError(path, "expected a JSON object")
        messages = data.get("messages", [])
        if not isinstance(messages, list):
            raise ChatFormatError(path, "'messages' must be a list")
        return cls(
            id=str(data.get("id") or generate_id()),
            messages=[
                ChatMessage.from_dict(m) for m in messages if isinstance(m, dict)
            ],
        )
