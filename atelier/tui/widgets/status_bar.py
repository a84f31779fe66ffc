"""Status bar — bottom line with directory, entry status and agent."""

from __future__ import annotations

from rich.text import Text
from textual.reactive import reactive
from textual.widget import Widget


class StatusBar(Widget):
    """Single-line status bar."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 1;
        background: $panel;
    }
    """

    directory: reactive[str] = reactive("/")
    status: reactive[str] = reactive("")
    agent_name: reactive[str] = reactive("No agent")
    loading: reactive[str] = reactive("")
    dirty: reactive[bool] = reactive(False)

    def render(self) -> Text:
        bar = Text()
        bar.append(f" {self.directory} ", style="bold")
        bar.append(" │ ", style="dim")
        if self.loading:
            bar.append(f"● {self.loading}", style="yellow")
        elif self.status:
            bar.append(self.status, style="yellow" if self.dirty else "white")
        bar.append(" │ ", style="dim")
        bar.append(self.agent_name, style="cyan")
        return bar
