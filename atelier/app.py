"""Atelier CLI — main application entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import yaml

from atelier.engine.config import LOG_DIR, WorkspaceConfig, load_config

logger = logging.getLogger(__name__)


def _configure_logging(log_dir: Path, level_name: str) -> Path:
    """Send all logging to a rotating file; the TUI owns the terminal."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "atelier.log"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    root.handlers.clear()
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    return log_file


async def _list_directory(config: WorkspaceConfig, directory: str) -> int:
    from atelier.engine.errors import StoreError
    from atelier.engine.paths import format_timestamp, normalize_directory
    from atelier.engine.tree import sort_entries
    from atelier.shared.services.store import EntryStore

    store = EntryStore(config.db_path)
    directory = normalize_directory(directory)
    try:
        await store.open()
        entries = await store.list(directory)
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not entries:
        print(f"{directory} is empty.")
        return 0
    for entry in sort_entries(entries):
        if entry.is_directory:
            print(f"  {entry.name}/")
        else:
            print(f"  {entry.name:<40} {format_timestamp(entry.timestamp)}")
    return 0


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="atelier",
        description="Atelier — terminal workspace for files, agents and chats",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (default: ~/.atelier/config.yaml when present)",
    )
    parser.add_argument(
        "--db", metavar="PATH",
        help="Workspace database file (overrides the config)",
    )
    parser.add_argument(
        "--list", metavar="DIR",
        help="Print a directory listing from the workspace and exit (no TUI)",
    )
    args = parser.parse_args()

    log_file = _configure_logging(
        LOG_DIR, os.getenv("ATELIER_LOG_LEVEL", "INFO")
    )
    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: cannot load config: {exc}", file=sys.stderr)
        sys.exit(2)
    if args.db:
        config.db_path = Path(args.db).expanduser()
    logging.getLogger().setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.info(
        "Starting Atelier db=%s config=%s log=%s",
        config.db_path, args.config or "<default>", log_file,
    )

    if args.list is not None:
        sys.exit(asyncio.run(_list_directory(config, args.list)))

    # TUI mode
    from atelier.tui.app import AtelierApp

    AtelierApp(config).run()


if __name__ == "__main__":
    main()
