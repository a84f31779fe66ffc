"""Exception hierarchy for the workspace engine.

One exception per failure mode. Operation handlers catch
``WorkspaceError`` at their boundary and report it to the view.
"""
from __future__ import annotations


class WorkspaceError(Exception):
    """Base exception for all workspace errors."""


class EntryNotFoundError(WorkspaceError):
    """No entry exists at the requested path."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Entry not found: {path}")


class ValidationError(WorkspaceError):
    """Parsed entry content violates its structural contract."""


class AgentConfigError(ValidationError):
    """Agent configuration is malformed or missing its model."""
    def __init__(self, reason: str, path: str | None = None):
        self.reason = reason
        self.path = path
        super().__init__(reason)


class ChatFormatError(ValidationError):
    """Chat transcript content is not a valid session document."""
    def __init__(self, path: str | None, reason: str):
        self.path = path
        self.reason = reason
        where = f" in {path}" if path else ""
        super().__init__(f"Invalid chat session{where}: {reason}")


class StoreError(WorkspaceError):
    """The entry store rejected a list/get/put/delete request."""
    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(f"Store {operation} failed for {path}: {reason}")


class ExportError(WorkspaceError):
    """Best-effort export of a saved entry failed."""
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Could not export {name}: {reason}")


class PreconditionError(WorkspaceError):
    """An operation was requested before its preconditions were met."""


class EntryBusyError(WorkspaceError):
    """Another operation on the same entry is still in flight."""
    def __init__(self, path: str, operation: str):
        self.path = path
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {path}: another operation is in progress"
        )


class ChatTransportError(WorkspaceError):
    """The chat completion endpoint failed or returned garbage."""
    def __init__(self, reason: str, status: int | None = None):
        self.reason = reason
        self.status = status
        prefix = f"HTTP {status}: " if status is not None else ""
        super().__init__(f"Chat request failed: {prefix}{reason}")
