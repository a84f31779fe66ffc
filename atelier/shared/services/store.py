"""SQLite-backed entry store.

Storage layout:
    entries(path TEXT PRIMARY KEY, type TEXT, content TEXT, timestamp TEXT)

Directory rows carry a trailing slash and no content. Directories that
only exist as prefixes of deeper paths are reported as implicit
directories by ``list``/``get``. Blocking sqlite calls run on a worker
thread so the event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path

from atelier.engine.errors import StoreError
from atelier.engine.interfaces import Store
from atelier.engine.models import Entry, EntryType
from atelier.engine.paths import (
    BACKUP_DIR,
    ROOT,
    ancestors,
    get_name,
    is_directory_path,
    normalize_directory,
    utcnow,
)

logger = logging.getLogger(__name__)


def _row_to_entry(row: sqlite3.Row, *, with_content: bool = True) -> Entry:
    ts = row["timestamp"]
    return Entry(
        path=row["path"],
        type=EntryType(row["type"]),
        content=row["content"] if with_content else None,
        timestamp=datetime.fromisoformat(ts) if ts else None,
    )


class EntryStore(Store):
    """Virtual filesystem persisted in a single SQLite database file."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._opened = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def _run(self, operation: str, path: str, fn, *args):
        if not self._opened and operation != "open":
            raise StoreError(operation, path, "store is not open")
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as exc:
            logger.exception("Store %s failed for %s", operation, path)
            raise StoreError(operation, path, str(exc)) from exc
        except OSError as exc:
            raise StoreError(operation, path, str(exc)) from exc

    # ── public API ──────────────────────────────────────────────────

    async def open(self) -> None:
        await self._run("open", str(self._db_path), self._open_sync)
        self._opened = True
        logger.info("Entry store opened at %s", self._db_path)

    async def list(self, path: str) -> list[Entry]:
        directory = normalize_directory(path)
        return await self._run("list", directory, self._list_sync, directory)

    async def get(self, path: str) -> Entry | None:
        return await self._run("get", path, self._get_sync, path)

    async def put(self, path: str, content: str) -> Entry:
        if is_directory_path(path):
            raise StoreError("put", path, "path is a directory")
        return await self._run("put", path, self._put_sync, path, content)

    async def delete(self, path: str) -> None:
        await self._run("delete", path, self._delete_sync, path)

    async def ensure_directory(self, path: str) -> None:
        directory = normalize_directory(path)
        await self._run("mkdir", directory, self._ensure_directory_sync, directory)

    # ── sync implementations (worker thread) ────────────────────────

    def _open_sync(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entries (
                    path TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    content TEXT,
                    timestamp TEXT
                )
                """
            )

    def _list_sync(self, directory: str) -> list[Entry]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT path, type, content, timestamp FROM entries "
                "WHERE substr(path, 1, length(?)) = ? AND path != ?",
                (directory, directory, directory),
            ).fetchall()
            if not rows and directory != ROOT and not self._row_exists(conn, directory):
                raise StoreError("list", directory, "no such directory")

        children: dict[str, Entry] = {}
        for row in rows:
            rest = row["path"][len(directory):]
            head, sep, tail = rest.partition("/")
            if sep and tail:
                # Deeper descendant: surface its top-level directory.
                child_path = f"{directory}{head}/"
                children.setdefault(
                    child_path, Entry(path=child_path, type=EntryType.DIRECTORY)
                )
            else:
                children[row["path"]] = _row_to_entry(row, with_content=False)
        return list(children.values())

    def _get_sync(self, path: str) -> Entry | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT path, type, content, timestamp FROM entries WHERE path = ?",
                (path,),
            ).fetchone()
            if row is not None:
                return _row_to_entry(row)
            if is_directory_path(path) and self._has_descendants(conn, path):
                return Entry(path=path, type=EntryType.DIRECTORY)
        return None

    def _put_sync(self, path: str, content: str) -> Entry:
        now = utcnow()
        with closing(self._connect()) as conn, conn:
            if self._row_exists(conn, path + "/"):
                raise StoreError("put", path, "a directory exists at this path")
            self._create_ancestors(conn, path)
            conn.execute(
                """
                INSERT INTO entries(path, type, content, timestamp)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    content = excluded.content,
                    timestamp = excluded.timestamp
                """,
                (path, EntryType.FILE.value, content, now.isoformat()),
            )
        return Entry(path=path, type=EntryType.FILE, content=content, timestamp=now)

    def _delete_sync(self, path: str) -> None:
        with closing(self._connect()) as conn, conn:
            row = conn.execute(
                "SELECT path, type, content FROM entries WHERE path = ?", (path,)
            ).fetchone()
            if row is None:
                raise StoreError("delete", path, "no such entry")
            if row["type"] == EntryType.DIRECTORY.value:
                if self._has_descendants(conn, path):
                    raise StoreError("delete", path, "directory is not empty")
            elif not path.startswith(BACKUP_DIR):
                self._write_backup(conn, path, row["content"])
            conn.execute("DELETE FROM entries WHERE path = ?", (path,))
        logger.info("Deleted entry %s", path)

    def _ensure_directory_sync(self, directory: str) -> None:
        with closing(self._connect()) as conn, conn:
            self._create_ancestors(conn, directory)
            if directory != ROOT:
                self._insert_directory(conn, directory)

    # ── helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _row_exists(conn: sqlite3.Connection, path: str) -> bool:
        return conn.execute(
            "SELECT 1 FROM entries WHERE path = ?", (path,)
        ).fetchone() is not None

    @staticmethod
    def _has_descendants(conn: sqlite3.Connection, directory: str) -> bool:
        return conn.execute(
            "SELECT 1 FROM entries "
            "WHERE substr(path, 1, length(?)) = ? AND path != ? LIMIT 1",
            (directory, directory, directory),
        ).fetchone() is not None

    def _create_ancestors(self, conn: sqlite3.Connection, path: str) -> None:
        for directory in ancestors(path):
            if self._row_exists(conn, directory.rstrip("/")):
                raise StoreError("put", path, f"{directory.rstrip('/')} is a file")
            self._insert_directory(conn, directory)

    @staticmethod
    def _insert_directory(conn: sqlite3.Connection, directory: str) -> None:
        conn.execute(
            "INSERT OR IGNORE INTO entries(path, type, content, timestamp) "
            "VALUES (?, ?, NULL, ?)",
            (directory, EntryType.DIRECTORY.value, utcnow().isoformat()),
        )

    def _write_backup(
        self, conn: sqlite3.Connection, path: str, content: str | None
    ) -> None:
        stamp = utcnow().strftime("%Y%m%dT%H%M%S%f")
        backup_path = f"{BACKUP_DIR}{stamp}_{get_name(path)}"
        self._insert_directory(conn, BACKUP_DIR)
        conn.execute(
            "INSERT OR REPLACE INTO entries(path, type, content, timestamp) "
            "VALUES (?, ?, ?, ?)",
            (backup_path, EntryType.FILE.value, content, utcnow().isoformat()),
        )
        logger.debug("Backed up %s to %s", path, backup_path)
