"""Workspace configuration.

Defaults below, overridden by an optional YAML file and then by
ATELIER_* environment variables. Example YAML:

    workspace:
      db_path: ~/.atelier/workspace.sqlite3
      export_dir: ~/atelier-exports
      seed_sources: true
    chat:
      api_base: https://api.vsegpt.ru/v1
      credential_key: vsegpt
      default_agent_model: anthropic/claude-3-haiku
      request_timeout_seconds: 120
    logging:
      level: DEBUG
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

ATELIER_HOME = Path.home() / ".atelier"
LOG_DIR = ATELIER_HOME / "logs"
DEFAULT_CONFIG_PATH = ATELIER_HOME / "config.yaml"

# YAML section -> keys that map onto WorkspaceConfig fields.
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "workspace": {
        "db_path": "db_path",
        "export_dir": "export_dir",
        "seed_sources": "seed_sources",
    },
    "chat": {
        "api_base": "api_base",
        "credential_key": "credential_key",
        "default_agent_model": "default_agent_model",
        "request_timeout_seconds": "request_timeout_seconds",
    },
    "logging": {"level": "log_level"},
}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class WorkspaceConfig:
    """Settings for the store, chat client, export and logging."""

    db_path: Path = field(default_factory=lambda: ATELIER_HOME / "workspace.sqlite3")
    export_dir: Path = field(default_factory=lambda: ATELIER_HOME / "exports")
    seed_sources: bool = True

    api_base: str = "https://api.vsegpt.ru/v1"
    # Key looked up in /secrets/api_keys.json
    credential_key: str = "vsegpt"
    default_agent_model: str = "anthropic/claude-3-haiku"
    request_timeout_seconds: float = 120.0

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path).expanduser()
        self.export_dir = Path(self.export_dir).expanduser()
        self.request_timeout_seconds = float(self.request_timeout_seconds)
        self.log_level = str(self.log_level).upper()

    def apply_env(self, environ: dict[str, str] | None = None) -> WorkspaceConfig:
        """Override fields from ATELIER_<FIELD> variables."""
        env = os.environ if environ is None else environ
        for f in fields(self):
            raw = env.get(f"ATELIER_{f.name.upper()}")
            if raw is None:
                continue
            current = getattr(self, f.name)
            if isinstance(current, bool):
                value: Any = _env_bool(raw)
            elif isinstance(current, float):
                try:
                    value = float(raw)
                except ValueError:
                    logger.warning("Ignoring non-numeric ATELIER_%s=%r", f.name.upper(), raw)
                    continue
            else:
                value = raw
            setattr(self, f.name, value)
        self.__post_init__()
        return self


def load_config(
    path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> WorkspaceConfig:
    """Build the effective configuration.

    An explicit *path* must exist; otherwise ``~/.atelier/config.yaml``
    is read when present. Environment variables win over the file.
    """
    config_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH
    values: dict[str, Any] = {}
    if path or config_path.exists():
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error("Config file not found: %s", config_path)
            raise
        except yaml.YAMLError as exc:
            logger.error("YAML parse error in %s: %s", config_path, exc)
            raise
        if not isinstance(raw, dict):
            raise ValueError(f"{config_path}: top level must be a mapping")
        for section, keys in _YAML_SECTIONS.items():
            block = raw.get(section) or {}
            if not isinstance(block, dict):
                logger.warning("Ignoring non-mapping section '%s' in %s", section, config_path)
                continue
            for key, attr in keys.items():
                if key in block:
                    values[attr] = block[key]
        logger.info(
            "Loaded config %s — sections: %s",
            config_path, ", ".join(sorted(raw.keys())) or "(empty)",
        )
    return WorkspaceConfig(**values).apply_env(environ)
