"""Directory backend: write the snapshot to a plain output directory.

``initialize`` removes and recreates the directory, ``write`` streams files
into it, ``finalize`` publishes nothing.  Useful for previewing a snapshot
or handing it to another deploy tool.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from sitefreeze._errors import ConfigError, WriteError
from sitefreeze.backends.base import resolve_target, write_stream

if TYPE_CHECKING:
    from sitefreeze._types import ByteStream
    from sitefreeze.config import DirectoryBackendConfig
    from sitefreeze.observability.collector import RunCollector


class DirectoryBackend:
    """Backend that leaves the snapshot in ``working_dir``."""

    __slots__ = ("_collector", "_config")

    def __init__(self, config: DirectoryBackendConfig, collector: RunCollector) -> None:
        if config.working_dir == Path(config.working_dir.anchor):
            msg = f"Refusing to use filesystem root {config.working_dir} as output"
            raise ConfigError(msg)
        self._config = config
        self._collector = collector

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def working_dir(self) -> Path:
        return self._config.working_dir

    async def initialize(self) -> None:
        """Remove and recreate the output directory."""
        output = self.working_dir
        try:
            await asyncio.to_thread(self._reset_output)
        except OSError as exc:
            msg = f"Failed to prepare output directory {output}: {exc}"
            raise WriteError(msg) from exc

    async def write(self, stream: ByteStream, target_path: str) -> int:
        return await write_stream(stream, resolve_target(self.working_dir, target_path))

    async def finalize(self) -> None:
        self._collector.record_note(self.name, f"snapshot complete in {self.working_dir}")

    def _reset_output(self) -> None:
        output = self.working_dir
        if output.exists():
            self._collector.record_removal(str(output))
            shutil.rmtree(output)
        output.mkdir(parents=True, exist_ok=True)
