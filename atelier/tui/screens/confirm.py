"""Yes/no confirmation modal.

Used for discarding unsaved edits and for deletes. Returns True when
confirmed, False otherwise.
"""
from __future__ import annotations

import time

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ConfirmScreen(ModalScreen[bool]):
    """Blocking yes/no question."""

    CSS_PATH = "../styles/modal.tcss"

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("n", "cancel", "No"),
        ("y", "confirm", "Yes"),
    ]

    # Ignore the keypress that opened the dialog.
    _MOUNT_GUARD_SECONDS = 0.3

    def __init__(self, message: str, *, confirm_label: str = "Yes", **kwargs) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.confirm_label = confirm_label
        self._mount_time = 0.0

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog", classes="dialog"):
            yield Static(self.message, id="confirm-message", markup=False)
            with Horizontal(classes="dialog-actions"):
                yield Button(f"[y] {self.confirm_label}", id="btn-confirm", variant="warning")
                yield Button("[n] No", id="btn-cancel")

    def on_mount(self) -> None:
        self._mount_time = time.monotonic()
        self.query_one("#btn-cancel", Button).focus()

    def _is_guarded(self) -> bool:
        return time.monotonic() - self._mount_time < self._MOUNT_GUARD_SECONDS

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if self._is_guarded():
            return
        self.dismiss(event.button.id == "btn-confirm")

    def action_confirm(self) -> None:
        if self._is_guarded():
            return
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
