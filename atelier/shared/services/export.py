"""Export of saved source modules to the real filesystem.

Edits to seeded modules only live in the workspace database until the
user copies the exported file over the installed one and restarts.
A previous export of the same module is kept as ``<name>.orig``.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from atelier.engine.errors import ExportError

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"
PREVIOUS_SUFFIX = ".orig"


@dataclass(frozen=True)
class ExportResult:
    target: Path
    # Where the earlier export of this module was moved, if there was one.
    previous: Path | None = None


class SourceExporter:
    """Writes saved source entries into an export directory."""

    def __init__(self, export_dir: Path) -> None:
        self._export_dir = Path(export_dir)

    @property
    def export_dir(self) -> Path:
        return self._export_dir

    async def export(self, name: str, content: str) -> ExportResult:
        """Export *content* as ``<export_dir>/<name>``. Raises ExportError."""
        if not name or "/" in name or name in {".", ".."}:
            raise ExportError(name, "invalid file name")
        try:
            result = await asyncio.to_thread(self._write_module, name, content)
        except OSError as exc:
            logger.warning("Export of %s to %s failed: %s", name, self._export_dir, exc)
            raise ExportError(name, str(exc)) from exc
        if result.previous is not None:
            logger.info("Exported %s to %s (previous kept as %s)", name, result.target, result.previous)
        else:
            logger.info("Exported %s to %s", name, result.target)
        return result

    def _write_module(self, name: str, content: str) -> ExportResult:
        self._export_dir.mkdir(parents=True, exist_ok=True)
        target = self._export_dir / name
        partial = target.with_name(name + PARTIAL_SUFFIX)
        try:
            with open(partial, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError:
            partial.unlink(missing_ok=True)
            raise

        previous = None
        if target.exists():
            previous = target.with_name(name + PREVIOUS_SUFFIX)
            shutil.copy2(target, previous)
        os.replace(partial, target)
        return ExportResult(target=target, previous=previous)
