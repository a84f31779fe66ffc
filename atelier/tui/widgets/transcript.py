"""Transcript view — read-only rendering of the open chat session."""

from __future__ import annotations

from rich.markdown import Markdown as RichMarkdown
from rich.text import Text
from textual.widgets import RichLog

from atelier.engine.models import ChatSession

_ROLE_STYLES = {
    "user": ("You", "bold green"),
    "assistant": ("Assistant", "bold cyan"),
    "system": ("System", "bold yellow"),
}


class TranscriptView(RichLog):
    """Scrollable chat transcript; hidden while no chat is open."""

    DEFAULT_CSS = """
    TranscriptView {
        display: none;
        height: 1fr;
        border: round $primary-darken-2;
    }

    TranscriptView.visible {
        display: block;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(auto_scroll=True, wrap=True, markup=False, **kwargs)
        self.border_title = "Chat"

    def show_chat(self, chat: ChatSession | None) -> None:
        self.clear()
        self.set_class(chat is not None, "visible")
        if chat is None:
            return
        if not chat.messages:
            self.write(Text("No messages yet. Type below and send.", style="dim"))
            return
        for message in chat.messages:
            label, style = _ROLE_STYLES.get(message.role, (message.role, "bold"))
            header = Text()
            header.append(label, style=style)
            header.append(f"  {message.timestamp.astimezone():%H:%M}", style="dim")
            self.write(header)
            if message.role == "assistant":
                self.write(RichMarkdown(message.content))
            else:
                self.write(Text(message.content))
            self.write(Text(""))
