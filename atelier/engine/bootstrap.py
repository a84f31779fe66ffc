"""Startup sequence: open storage, seed the workspace, list the root."""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from importlib import resources
from typing import TYPE_CHECKING

from atelier.engine.errors import StoreError
from atelier.engine.interfaces import PERSISTENT, NoticeLevel
from atelier.engine.models import AgentConfig
from atelier.engine.paths import AGENTS_DIR, ROOT, SOURCE_DIR, WELL_KNOWN_DIRS, get_name
from atelier.engine.tree import WorkspaceTree

if TYPE_CHECKING:
    from atelier.engine.controller import WorkspaceController

logger = logging.getLogger(__name__)

# Reads a module of the installed package by its package-relative path.
SourceReader = Callable[[str], str]

# Modules copied into /js/ so they can be browsed and edited in the workspace.
SEEDED_MODULES = (
    "app.py",
    "engine/controller.py",
    "engine/navigator.py",
    "engine/lifecycle.py",
    "engine/dispatch.py",
    "engine/bootstrap.py",
    "shared/services/store.py",
    "shared/services/chat_session.py",
)

EXAMPLE_AGENT_PATH = AGENTS_DIR + "example-agent.json"


def read_package_source(relative_path: str) -> str:
    return resources.files("atelier").joinpath(relative_path).read_text(encoding="utf-8")


class Bootstrapper:
    def __init__(
        self,
        controller: WorkspaceController,
        source_reader: SourceReader | None = None,
    ) -> None:
        self._c = controller
        self._read_source = source_reader or read_package_source

    async def start(self) -> bool:
        """Run the startup sequence. Returns False when storage cannot open."""
        c = self._c
        view = c.view
        view.set_loading(True, "Opening workspace database…")
        view.show_editor(None)
        c.refresh_buttons()

        try:
            await c.store.open()
        except StoreError as exc:
            logger.critical("Workspace database failed to open: %s", exc)
            view.show_notice(
                f"Critical initialization error: {exc}. The workspace is unavailable.",
                NoticeLevel.ERROR,
                PERSISTENT,
            )
            tree = WorkspaceTree(ROOT)
            tree.fail(tree.root.id, "Workspace database failed to open")
            c.tree = tree
            view.set_loading(False)
            view.render_tree(tree)
            return False
        view.show_notice("Workspace database ready.", NoticeLevel.SUCCESS, 1.5)

        await self._seed_layout()
        if c.config.seed_sources:
            view.set_loading(True, "Seeding application modules…")
            await self._seed_sources()

        view.enable_input()
        await c.navigator.list_directory(ROOT)
        logger.info("Workspace ready")
        return True

    async def _seed_layout(self) -> None:
        store = self._c.store
        for directory in WELL_KNOWN_DIRS:
            try:
                await store.ensure_directory(directory)
            except StoreError as exc:
                logger.warning("Could not create %s: %s", directory, exc)

        try:
            if await store.get(EXAMPLE_AGENT_PATH) is None:
                doc = AgentConfig.default_document(self._c.config.default_agent_model)
                doc["name"] = "Example Agent"
                doc["configurations"]["temperature"] = 0.7
                await store.put(EXAMPLE_AGENT_PATH, json.dumps(doc, indent=2))
                logger.info("Seeded %s", EXAMPLE_AGENT_PATH)
        except StoreError as exc:
            logger.warning("Could not seed %s: %s", EXAMPLE_AGENT_PATH, exc)

    async def _seed_sources(self) -> None:
        c = self._c
        failed = 0
        for relative in SEEDED_MODULES:
            target = SOURCE_DIR + get_name(relative)
            try:
                content = await asyncio.to_thread(self._read_source, relative)
                await c.store.put(target, content)
            except (OSError, StoreError) as exc:
                failed += 1
                logger.error("Failed to seed %s: %s", target, exc)
                c.view.show_notice(f"Failed to seed {target}: {exc}", NoticeLevel.ERROR)
        if failed:
            logger.warning("Seeded %d of %d modules", len(SEEDED_MODULES) - failed, len(SEEDED_MODULES))
        else:
            c.view.show_notice(
                f"Application modules loaded into {SOURCE_DIR}.", NoticeLevel.INFO, 2.0
            )
