"""Entry lifecycle — load, save, create, delete and edit tracking."""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from atelier.engine.errors import (
    AgentConfigError,
    ChatFormatError,
    EntryBusyError,
    EntryNotFoundError,
    ExportError,
    StoreError,
    WorkspaceError,
)
from atelier.engine.interfaces import NoticeLevel
from atelier.engine.models import AgentConfig, ChatSession, Entry
from atelier.engine.paths import (
    AGENTS_DIR,
    BACKUP_DIR,
    CHATS_DIR,
    JSON_EXT,
    SECRETS_DIR,
    TEXT_EXTS,
    EntryKind,
    classify,
    format_timestamp,
    generate_id,
    get_directory,
    get_name,
)
from atelier.engine.state import (
    agent_config_accepted,
    deleted,
    edited,
    load_failed,
    loaded,
    saved,
    selected,
)

if TYPE_CHECKING:
    from atelier.engine.controller import WorkspaceController

logger = logging.getLogger(__name__)

DISCARD_PROMPT = "There are unsaved changes. Continue without saving?"


def initial_content(name: str, directory: str, default_model: str) -> str:
    """Seed text for a newly created entry, chosen by extension and directory."""
    lower = name.lower()
    if lower.endswith(JSON_EXT):
        if directory == CHATS_DIR:
            return ChatSession.new().to_json()
        if directory == AGENTS_DIR:
            doc = AgentConfig.default_document(default_model)
        elif directory == SECRETS_DIR:
            doc = {"id": generate_id(), "service": "New Service", "data": {}}
        else:
            doc = {}
        return json.dumps(doc, indent=2, ensure_ascii=False)
    if lower.endswith(TEXT_EXTS):
        return f"New file: {name}\n"
    return ""


class EntryLifecycle:
    """Per-entry state machine plus the dirty-state tracker."""

    def __init__(self, controller: WorkspaceController) -> None:
        self._c = controller

    async def confirm_discard(self) -> bool:
        if not self._c.state.is_dirty:
            return True
        return await self._c.view.confirm(DISCARD_PROMPT)

    # ── load ────────────────────────────────────────────────────────

    async def load(self, path: str, *, confirm: bool = True) -> bool:
        """Open *path*. Pass ``confirm=False`` when the caller already asked
        to discard unsaved edits.
        """
        c = self._c
        view = c.view
        if confirm and not await self.confirm_discard():
            logger.debug("Load of %s cancelled: unsaved changes kept", path)
            return False

        c.state = selected(c.state, path)
        c.session.clear()
        view.show_editor(None)
        view.set_status("Loading…")
        c.refresh_buttons()

        try:
            entry = await c.store.get(path)
            if entry is None or entry.is_directory:
                raise EntryNotFoundError(path)
        except WorkspaceError as exc:
            logger.warning("Load of %s failed: %s", path, exc)
            if c.state.selected_path == path:
                c.state = load_failed(c.state)
                view.set_status("")
            view.show_notice(f"Error loading {get_name(path)}: {exc}", NoticeLevel.ERROR)
            c.refresh_buttons()
            return False

        if c.state.selected_path != path:
            # Superseded by a newer load or a navigation while fetching.
            logger.debug("Load of %s superseded", path)
            return False

        kind = classify(path)
        text = "" if kind is EntryKind.CHAT else (entry.content or "")
        c.state = loaded(c.state, path, text)
        view.show_editor(entry)
        if kind is EntryKind.CHAT:
            # The edit surface becomes the chat input.
            view.set_editor_text("")
        view.set_status(f"Modified: {format_timestamp(entry.timestamp)}")

        if kind is EntryKind.AGENT_CONFIG:
            self.apply_agent_config(entry)
        elif kind is EntryKind.CHAT:
            self._open_chat(entry)
        else:
            view.show_agent_config_panel(None)
        c.refresh_buttons()
        logger.info("Loaded %s", path)
        return True

    def apply_agent_config(self, entry: Entry) -> AgentConfig | None:
        """Validate *entry* and make it the active agent configuration.

        An invalid document clears the active config and leaves
        ``last_agent_config`` untouched.
        """
        c = self._c
        try:
            config = AgentConfig.parse(entry.content, entry.path)
        except AgentConfigError as exc:
            logger.warning("Invalid agent configuration %s: %s", entry.path, exc)
            c.session.set_active_config(None)
            c.view.show_agent_config_panel(None, str(exc))
            c.view.show_notice(
                f"Error in agent configuration {entry.name}: {exc}", NoticeLevel.ERROR
            )
            return None

        c.session.set_active_config(config)
        c.state = agent_config_accepted(c.state, config)
        c.view.show_agent_config_panel(config)
        c.view.show_notice(
            f"Agent configuration {config.name or entry.name} loaded.",
            NoticeLevel.SUCCESS,
            2.0,
        )
        return config

    def _open_chat(self, entry: Entry) -> None:
        try:
            self._c.session.load_into(entry)
        except ChatFormatError as exc:
            logger.warning("Cannot open chat %s: %s", entry.path, exc)
            self._c.view.show_notice(str(exc), NoticeLevel.ERROR)

    # ── save ────────────────────────────────────────────────────────

    async def save(self, text: str | None = None) -> bool:
        c = self._c
        view = c.view
        state = c.state
        if state.selected_path is None:
            view.show_notice("No entry selected.", NoticeLevel.WARNING, 1.5)
            return False
        if not state.is_dirty:
            view.show_notice("No changes to save.", NoticeLevel.WARNING, 1.5)
            return False

        path = state.selected_path
        content = state.edited_text if text is None else text
        try:
            with c.claim(path, "save"):
                view.set_status("Saving…")
                c.disable_buttons()
                entry = await c.store.put(path, content)
        except EntryBusyError as exc:
            view.show_notice(str(exc), NoticeLevel.WARNING)
            c.refresh_buttons()
            return False
        except StoreError as exc:
            logger.exception("Save of %s failed", path)
            view.set_status("Save failed")
            view.show_notice(f"Error saving {get_name(path)}: {exc}", NoticeLevel.ERROR)
            c.refresh_buttons()
            return False

        still_selected = c.state.selected_path == path
        if still_selected:
            c.state = saved(c.state)
            view.set_status(f"Saved: {format_timestamp(entry.timestamp)}")
        view.show_notice(f"{entry.name} saved.", NoticeLevel.SUCCESS, 2.0)
        logger.info("Saved %s (%d chars)", path, len(content))

        await self._after_save(entry, still_selected)
        c.refresh_buttons()
        return True

    async def _after_save(self, entry: Entry, still_selected: bool) -> None:
        kind = classify(entry.path)
        if kind is EntryKind.AGENT_CONFIG:
            self.apply_agent_config(entry)
        elif kind is EntryKind.SOURCE:
            await self._export_source(entry)
        elif kind is EntryKind.CHAT and still_selected:
            self._open_chat(entry)

    async def _export_source(self, entry: Entry) -> None:
        view = self._c.view
        try:
            result = await self._c.exporter.export(entry.name, entry.content or "")
        except ExportError as exc:
            view.show_notice(
                f"{exc}. Changes are saved in the workspace only.", NoticeLevel.WARNING, 5.0
            )
            return
        kept = f" Previous export kept as {result.previous.name}." if result.previous else ""
        view.show_notice(
            f"{entry.name} exported to {result.target}. Replace the installed module "
            f"with it and restart Atelier to apply the change.{kept}",
            NoticeLevel.WARNING,
            8.0,
        )

    # ── create ──────────────────────────────────────────────────────

    async def create(self, name: str | None = None) -> bool:
        c = self._c
        view = c.view
        directory = c.state.current_directory
        if directory == BACKUP_DIR:
            view.show_notice(
                f"Cannot create entries in {BACKUP_DIR}.", NoticeLevel.ERROR
            )
            return False

        if name is None:
            name = await view.prompt(
                f"Name of the new entry in {directory}\n"
                "(for example: notes.txt, config.json, new_chat.json)"
            )
        name = (name or "").strip()
        if not name:
            return False
        if "/" in name:
            view.show_notice("Entry names cannot contain '/'.", NoticeLevel.ERROR)
            return False
        if not await self.confirm_discard():
            return False

        path = directory + name
        try:
            if await c.store.get(path) is not None:
                view.show_notice(f'"{name}" already exists in {directory}.', NoticeLevel.ERROR)
                return False
            content = initial_content(name, directory, c.config.default_agent_model)
            await c.store.put(path, content)
        except WorkspaceError as exc:
            logger.exception("Create of %s failed", path)
            view.show_notice(f"Error creating {name}: {exc}", NoticeLevel.ERROR)
            c.refresh_buttons()
            return False

        logger.info("Created %s", path)
        view.show_notice(f"{name} created.", NoticeLevel.SUCCESS, 2.0)
        await c.navigator.list_directory(directory)
        return await self.load(path)

    # ── delete ──────────────────────────────────────────────────────

    async def delete(self) -> bool:
        c = self._c
        view = c.view
        path = c.state.selected_path
        if path is None:
            view.show_notice("No entry selected.", NoticeLevel.WARNING, 1.5)
            return False
        # Captured up front: the state is reset while the delete runs.
        refresh_directory = c.state.current_directory
        name = get_name(path)

        if get_directory(path) == BACKUP_DIR:
            warning = "This is a backup copy; no further backup will be made."
        else:
            warning = f"A backup copy will be kept in {BACKUP_DIR}."
        if not await view.confirm(f'Delete "{name}"?\n{warning}'):
            return False

        try:
            with c.claim(path, "delete"):
                view.set_status("Deleting…")
                c.disable_buttons()
                await c.store.delete(path)
        except EntryBusyError as exc:
            view.show_notice(str(exc), NoticeLevel.WARNING)
            c.refresh_buttons()
            return False
        except StoreError as exc:
            logger.exception("Delete of %s failed", path)
            view.set_status("Delete failed")
            view.show_notice(f"Error deleting {name}: {exc}", NoticeLevel.ERROR)
            c.refresh_buttons()
            return False

        logger.info("Deleted %s", path)
        c.state = deleted(c.state)
        c.session.clear()
        view.show_editor(None)
        view.show_notice(f"{name} deleted.", NoticeLevel.SUCCESS, 2.0)
        await c.navigator.list_directory(refresh_directory)
        return True

    # ── dirty tracking ──────────────────────────────────────────────

    def on_edit(self, text: str) -> None:
        c = self._c
        c.state, status = edited(c.state, text)
        if status is not None:
            c.view.set_status(status)
        c.refresh_buttons()
