"""Atelier engine — UI-agnostic workspace controller."""
from .errors import (
    AgentConfigError,
    ChatFormatError,
    ChatTransportError,
    EntryBusyError,
    EntryNotFoundError,
    ExportError,
    PreconditionError,
    StoreError,
    ValidationError,
    WorkspaceError,
)
from .models import AgentConfig, ChatMessage, ChatSession, Entry, EntryType
from .state import ApplicationState

__all__ = [
    # Controller (lazy import to avoid circular deps)
    "WorkspaceController",
    # Models
    "AgentConfig",
    "ApplicationState",
    "ChatMessage",
    "ChatSession",
    "Entry",
    "EntryType",
    # Errors
    "AgentConfigError",
    "ChatFormatError",
    "ChatTransportError",
    "EntryBusyError",
    "EntryNotFoundError",
    "ExportError",
    "PreconditionError",
    "StoreError",
    "ValidationError",
    "WorkspaceError",
]


def __getattr__(name: str):
    if name == "WorkspaceController":
        from .controller import WorkspaceController
        return WorkspaceController
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
