"""Fixed virtual path conventions and path/name helpers.

The layout is a contract shared by every workspace database:

    /                        root
    /chats/                  chat transcripts (JSON)
    /agents/                 agent configurations (JSON)
    /secrets/api_keys.json   credential record
    /js/                     seeded application modules
    /backup/                 deleted-file backups (no creation allowed)
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

ROOT = "/"
CHATS_DIR = "/chats/"
AGENTS_DIR = "/agents/"
SECRETS_DIR = "/secrets/"
SECRETS_PATH = "/secrets/api_keys.json"
# Historical name; holds the seeded application modules.
SOURCE_DIR = "/js/"
BACKUP_DIR = "/backup/"

WELL_KNOWN_DIRS = (CHATS_DIR, AGENTS_DIR, SECRETS_DIR, SOURCE_DIR, BACKUP_DIR)

JSON_EXT = ".json"
SOURCE_EXT = ".py"
TEXT_EXTS = (".txt", ".md")


class EntryKind(Enum):
    """Classification of a path by directory and extension."""
    AGENT_CONFIG = "agent_config"
    CHAT = "chat"
    SECRET = "secret"
    SOURCE = "source"
    BACKUP = "backup"
    PLAIN = "plain"


def is_directory_path(path: str) -> bool:
    return path.endswith("/")


def normalize_directory(path: str) -> str:
    """Return *path* as an absolute directory path with a trailing slash."""
    path = path.strip() or ROOT
    if not path.startswith("/"):
        path = "/" + path
    if not path.endswith("/"):
        path += "/"
    return path


def get_directory(path: str) -> str:
    """Return the parent directory of *path* (always ends with ``/``).

    >>> get_directory("/chats/a.json")
    '/chats/'
    >>> get_directory("/chats/")
    '/'
    """
    trimmed = path[:-1] if path.endswith("/") and path != ROOT else path
    if trimmed == ROOT:
        return ROOT
    idx = trimmed.rfind("/")
    return trimmed[: idx + 1] if idx >= 0 else ROOT


def get_name(path: str) -> str:
    """Return the display name of *path* (no trailing slash)."""
    if path == ROOT:
        return ROOT
    trimmed = path[:-1] if path.endswith("/") else path
    return trimmed.rsplit("/", 1)[-1]


def join(directory: str, name: str) -> str:
    return normalize_directory(directory) + name.strip("/")


def ancestors(path: str) -> list[str]:
    """Directories strictly above *path*, outermost first, root excluded."""
    result: list[str] = []
    directory = get_directory(path)
    while directory != ROOT:
        result.append(directory)
        directory = get_directory(directory)
    result.reverse()
    return result


def classify(path: str) -> EntryKind:
    directory = get_directory(path)
    name = get_name(path)
    if directory == BACKUP_DIR:
        return EntryKind.BACKUP
    if name.endswith(JSON_EXT):
        if directory == AGENTS_DIR:
            return EntryKind.AGENT_CONFIG
        if directory == CHATS_DIR:
            return EntryKind.CHAT
        if directory == SECRETS_DIR:
            return EntryKind.SECRET
    if directory == SOURCE_DIR and name.endswith(SOURCE_EXT):
        return EntryKind.SOURCE
    return EntryKind.PLAIN


def is_chat_path(path: str | None) -> bool:
    return bool(path) and classify(path) is EntryKind.CHAT


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime | None) -> str:
    if ts is None:
        return "—"
    return ts.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def new_chat_path(now: datetime | None = None) -> str:
    """Timestamp-derived path for an auto-created chat entry."""
    stamp = (now or utcnow()).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return f"{CHATS_DIR}chat_{stamp}{JSON_EXT}"
