"""File-backed mirror of the request collection - YAML snapshot."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class MirrorError(Exception):
    """Raised when the mirror file cannot be read or written."""
    pass


class MirrorFile:
    """
    Best-effort backup copy of the request records on local disk.

    The file holds a single YAML document of the form::

        requests:
          - request_id: REQ-...
            ...

    Writes go to a temporary file in the same directory and are moved into
    place, so a reader sees either the old snapshot or the new one.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_sync(self) -> list[dict[str, Any]] | None:
        if not self.path.exists():
            return None

        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not data:
            return []
        if not isinstance(data, dict):
            raise MirrorError(f"Malformed mirror file: {self.path}")
        if "requests" not in data:
            return []
        records = data["requests"] or []
        if not isinstance(records, list):
            raise MirrorError(f"Malformed mirror file: {self.path}")
        return records

    def _write_sync(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(
                    {"requests": records}, f,
                    default_flow_style=False, allow_unicode=True, sort_keys=False,
                )
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def read_mirror(self) -> list[dict[str, Any]] | None:
        """Read raw records from the mirror. Returns None if no file exists."""
        try:
            return await asyncio.to_thread(self._read_sync)
        except (OSError, yaml.YAMLError) as e:
            raise MirrorError(f"Failed to read mirror {self.path}: {e}") from e

    async def write_mirror(self, records: list[dict[str, Any]]) -> None:
        """Replace the mirror contents with the given records."""
        try:
            await asyncio.to_thread(self._write_sync, records)
        except (OSError, yaml.YAMLError) as e:
            raise MirrorError(f"Failed to write mirror {self.path}: {e}") from e
        logger.debug(f"Mirror written: {len(records)} records -> {self.path}")
