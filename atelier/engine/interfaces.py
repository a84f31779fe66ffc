"""Abstract collaborator interfaces for the workspace controller.

The controller never touches SQLite, Textual or HTTP directly; it
drives these three interfaces:

- Store: path-keyed entry persistence (EntryStore)
- View: presentation and user decisions (MainScreen)
- Session: chat transcript and active agent (ChatSessionService)
"""
from __future__ import annotations

import abc
from enum import Enum

from atelier.engine.models import AgentConfig, Entry
from atelier.engine.tree import WorkspaceTree


class NoticeLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# Pass as a notice duration to keep it on screen until dismissed.
PERSISTENT = 0.0


class Store(abc.ABC):
    """Path-keyed entry storage."""

    @abc.abstractmethod
    async def open(self) -> None:
        """Open the backing storage. Raises StoreError on failure."""

    @abc.abstractmethod
    async def list(self, path: str) -> list[Entry]:
        """Immediate children of directory *path* (files without content)."""

    @abc.abstractmethod
    async def get(self, path: str) -> Entry | None:
        """Return the entry at *path*, or None when it does not exist."""

    @abc.abstractmethod
    async def put(self, path: str, content: str) -> Entry:
        """Create or overwrite the file at *path*; sets its timestamp."""

    @abc.abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the entry at *path*."""

    @abc.abstractmethod
    async def ensure_directory(self, path: str) -> None:
        """Create directory *path* if missing. Idempotent."""


class View(abc.ABC):
    """Presentation surface driven by the controller."""

    @abc.abstractmethod
    def render_tree(self, tree: WorkspaceTree) -> None: ...

    @abc.abstractmethod
    def set_loading(self, loading: bool, message: str | None = None) -> None: ...

    @abc.abstractmethod
    def show_notice(
        self,
        message: str,
        level: NoticeLevel = NoticeLevel.INFO,
        duration: float = 3.0,
    ) -> None:
        """Show a transient notice; ``duration == PERSISTENT`` keeps it."""

    @abc.abstractmethod
    def show_editor(self, entry: Entry | None) -> None:
        """Load *entry* into the edit surface, or clear it when None."""

    @abc.abstractmethod
    def set_editor_text(self, text: str) -> None: ...

    @abc.abstractmethod
    def set_status(self, text: str) -> None: ...

    @abc.abstractmethod
    def set_button_states(
        self, has_selection: bool, is_dirty: bool, has_text: bool
    ) -> None: ...

    @abc.abstractmethod
    def show_agent_config_panel(
        self, config: AgentConfig | None, error: str | None = None
    ) -> None: ...

    @abc.abstractmethod
    def enable_input(self) -> None:
        """Start accepting user actions (called once bootstrap seeding ends)."""

    @abc.abstractmethod
    async def confirm(self, message: str) -> bool:
        """Block until the user answers yes (True) or no (False)."""

    @abc.abstractmethod
    async def prompt(self, message: str) -> str | None:
        """Block until the user enters a line of text, or cancels (None)."""


class Session(abc.ABC):
    """Chat/agent session runtime."""

    @abc.abstractmethod
    async def send(
        self, text: str, credential: str | None, chat_path: str
    ) -> None: ...

    @abc.abstractmethod
    def load_into(self, entry: Entry) -> None: ...

    @abc.abstractmethod
    def clear(self) -> None: ...

    @abc.abstractmethod
    def get_active_config(self) -> AgentConfig | None: ...

    @abc.abstractmethod
    def set_active_config(self, config: AgentConfig | None) -> None: ...
