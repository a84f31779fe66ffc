"""Agent panel — summary of the active agent configuration."""

from __future__ import annotations

import json

from rich.console import Group
from rich.text import Text
from textual.widgets import Static

from atelier.engine.models import AgentConfig

# Keys shown in the header rather than in the parameter list.
_HEADER_KEYS = frozenset({"model", "system_prompt"})


class AgentConfigPanel(Static):
    """Shows the validated configuration, or why validation failed."""

    DEFAULT_CSS = """
    AgentConfigPanel {
        height: auto;
        max-height: 12;
        padding: 0 1;
        border: round $primary-darken-2;
        display: none;
    }

    AgentConfigPanel.visible {
        display: block;
    }

    AgentConfigPanel.invalid {
        border: round $error;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.border_title = "Agent"

    def show_config(self, config: AgentConfig | None, error: str | None = None) -> None:
        self.set_class(config is not None or error is not None, "visible")
        self.set_class(error is not None, "invalid")
        if error is not None:
            self.update(Text.assemble(("Invalid configuration\n", "bold red"), (error, "red")))
            return
        if config is None:
            self.update("")
            return
        self.update(self._render_config(config))

    @staticmethod
    def _render_config(config: AgentConfig) -> Group:
        header = Text()
        header.append(config.display_name, style="bold")
        if config.id:
            header.append(f"  {config.id[:8]}", style="dim")
        header.append("\nmodel ", style="dim")
        header.append(config.model, style="cyan")

        parts: list[Text] = [header]
        system_prompt = config.configurations.get("system_prompt")
        if system_prompt:
            prompt = str(system_prompt)
            if len(prompt) > 120:
                prompt = prompt[:117] + "..."
            parts.append(Text(prompt, style="italic dim"))
        for key, value in config.configurations.items():
            if key in _HEADER_KEYS:
                continue
            line = Text()
            line.append(f"{key}: ", style="dim")
            line.append(json.dumps(value, ensure_ascii=False))
            parts.append(line)
        return Group(*parts)
