"""Application state and its transitions.

``ApplicationState`` is immutable; every change goes through one of the
transition functions below so handlers can be reasoned about (and tested)
as ``(state, event) -> state``. Values a handler needs after a suspension
point are passed in explicitly rather than re-read from the live state.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from atelier.engine.models import AgentConfig
from atelier.engine.paths import ROOT, is_chat_path


@dataclass(frozen=True)
class ApplicationState:
    current_directory: str = ROOT
    selected_path: str | None = None
    is_dirty: bool = False
    last_agent_config: AgentConfig | None = None
    edited_text: str = ""

    @property
    def has_selection(self) -> bool:
        return self.selected_path is not None

    @property
    def has_text(self) -> bool:
        return bool(self.edited_text.strip())

    @property
    def is_chat_selected(self) -> bool:
        return is_chat_path(self.selected_path)


@dataclass(frozen=True)
class ButtonStates:
    save: bool
    delete: bool
    send: bool


def button_states(has_selection: bool, is_dirty: bool, has_text: bool) -> ButtonStates:
    """Enablement of the save/delete/send affordances."""
    return ButtonStates(
        save=has_selection and is_dirty,
        delete=has_selection,
        send=has_text,
    )


# ── transitions ───────────────────────────────────────────────────────


def navigated(state: ApplicationState, directory: str) -> ApplicationState:
    """A directory listing replaces the view: selection and edits reset."""
    return replace(
        state,
        current_directory=directory,
        selected_path=None,
        is_dirty=False,
        edited_text="",
    )


def selected(state: ApplicationState, path: str) -> ApplicationState:
    return replace(state, selected_path=path, is_dirty=False, edited_text="")


def loaded(state: ApplicationState, path: str, text: str) -> ApplicationState:
    return replace(state, selected_path=path, is_dirty=False, edited_text=text)


def load_failed(state: ApplicationState) -> ApplicationState:
    return replace(state, selected_path=None, is_dirty=False, edited_text="")


def edited(state: ApplicationState, text: str) -> tuple[ApplicationState, str | None]:
    """Apply an edit-surface change.

    Returns the new state and the status text to show, or None when the
    status should be left alone.
    """
    if state.is_chat_selected:
        return replace(state, edited_text=text, is_dirty=False), ""
    if state.has_selection and not state.is_dirty:
        return replace(state, edited_text=text, is_dirty=True), "Unsaved changes"
    return replace(state, edited_text=text), None


def saved(state: ApplicationState) -> ApplicationState:
    return replace(state, is_dirty=False)


def deleted(state: ApplicationState) -> ApplicationState:
    return replace(state, selected_path=None, is_dirty=False, edited_text="")


def message_sent(state: ApplicationState) -> ApplicationState:
    return replace(state, is_dirty=False, edited_text="")


def agent_config_accepted(
    state: ApplicationState, config: AgentConfig
) -> ApplicationState:
    return replace(state, last_agent_config=config)
