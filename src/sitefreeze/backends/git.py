"""Git backend: publish the snapshot as a commit on a remote branch.

Lifecycle:

``initialize``
    1. Create the working directory if needed.
    2. Delete every entry in it except ``.git``.
    3. No ``.git``: ``git clone --no-checkout <remote> <dir>``.
       Existing ``.git``: ``git fetch <remote_name>``.
    4. ``git checkout <branch>``
    5. ``git pull --ff-only <remote_name> <branch>``: diverged history
       fails the run instead of being merged or rebased away.

``write``
    Stream bytes into the working tree.

``finalize``
    ``git add -A``, ``git commit --allow-empty -m <message>``,
    ``git push <remote_name> <branch>:<branch>``.

Commands run one at a time, each awaited before the next starts, since
every step depends on the working tree left by the previous one.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from sitefreeze._errors import WriteError
from sitefreeze.backends.base import resolve_target, write_stream
from sitefreeze.backends.runner import CommandResult, CommandRunner

if TYPE_CHECKING:
    from sitefreeze._types import ByteStream
    from sitefreeze.config import GitBackendConfig
    from sitefreeze.observability.collector import RunCollector

GIT_DIR = ".git"


class GitBackend:
    """Backend that commits and pushes the snapshot to a git remote.

    Args:
        config: Validated git backend settings.
        collector: Recorder for removals and commands.
        runner: Command runner (one honoring ``config.command_timeout``
            is created when omitted).

    """

    __slots__ = ("_collector", "_config", "_runner")

    def __init__(
        self,
        config: GitBackendConfig,
        collector: RunCollector,
        runner: CommandRunner | None = None,
    ) -> None:
        self._config = config
        self._collector = collector
        self._runner = runner or CommandRunner(collector, timeout=config.command_timeout)

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def working_dir(self) -> Path:
        return self._config.working_dir

    @property
    def git_executable(self) -> str:
        """``git`` from ``bin_dir`` when configured, else from PATH."""
        if self._config.bin_dir is not None:
            return str(self._config.bin_dir / "git")
        return "git"

    # ------------------------------------------------------------------
    # Backend protocol
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        cfg = self._config
        work = cfg.working_dir

        try:
            await asyncio.to_thread(self._prepare_working_dir)
        except OSError as exc:
            msg = f"Failed to prepare working directory {work}: {exc}"
            raise WriteError(msg) from exc

        if (work / GIT_DIR).is_dir():
            await self._git("fetch", cfg.remote_name)
        else:
            await self._git(
                "clone", "--no-checkout", cfg.remote_repo, str(work), cwd=work.parent,
            )
        await self._git("checkout", cfg.branch)
        await self._git("pull", "--ff-only", cfg.remote_name, cfg.branch)

    async def write(self, stream: ByteStream, target_path: str) -> int:
        return await write_stream(stream, resolve_target(self.working_dir, target_path))

    async def finalize(self) -> None:
        cfg = self._config
        await self._git("add", "-A")
        await self._git("commit", "--allow-empty", "-m", cfg.commit_message)
        await self._git("push", cfg.remote_name, f"{cfg.branch}:{cfg.branch}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _prepare_working_dir(self) -> None:
        self._config.working_dir.mkdir(parents=True, exist_ok=True)
        self._clean_working_dir()

    def _clean_working_dir(self) -> None:
        """Delete everything in the working directory except git metadata."""
        for entry in sorted(self.working_dir.iterdir()):
            if entry.name == GIT_DIR:
                continue
            self._collector.record_removal(str(entry))
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()

    async def _git(self, *args: str, cwd: Path | None = None) -> CommandResult:
        argv = (self.git_executable, *args)
        return await asyncio.to_thread(self._runner.run, argv, cwd or self.working_dir)
