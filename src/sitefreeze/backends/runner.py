"""External command runner for backends.

Runs one process at a time and records it in the run's event log before
it is spawned and again when it exits.  Any failure (non-zero exit,
timeout, missing executable) raises ``BackendProcessError``; nothing is
retried.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sitefreeze._errors import BackendProcessError

if TYPE_CHECKING:
    from sitefreeze.observability.collector import RunCollector

DEFAULT_COMMAND_TIMEOUT = 300.0  # seconds


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of a successful command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs external commands synchronously with a timeout.

    Args:
        collector: Recorder for command events.
        timeout: Seconds before a command is killed and treated as failed.
        env: Extra environment variables layered over ``os.environ``.

    """

    __slots__ = ("_collector", "_env", "_timeout")

    def __init__(
        self,
        collector: RunCollector,
        *,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._collector = collector
        self._timeout = timeout
        self._env = dict(env) if env else None

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, argv: Sequence[str], cwd: Path) -> CommandResult:
        """Run *argv* in *cwd* and return its captured output.

        Raises:
            BackendProcessError: If the command cannot be started, times
                out, or exits non-zero.

        """
        args = tuple(str(a) for a in argv)
        self._collector.record_command(args, str(cwd))

        env = {**os.environ, **self._env} if self._env else None
        t0 = time.perf_counter()
        try:
            completed = subprocess.run(  # noqa: S603
                args,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            self._collector.record_command_result(
                args, None, duration_ms=(time.perf_counter() - t0) * 1000,
            )
            raise BackendProcessError(
                args, None, f"timed out after {self._timeout:g}s",
            ) from exc
        except OSError as exc:
            self._collector.record_command_result(
                args, None, duration_ms=(time.perf_counter() - t0) * 1000,
            )
            raise BackendProcessError(args, None, str(exc)) from exc

        elapsed = (time.perf_counter() - t0) * 1000
        self._collector.record_command_result(args, completed.returncode, duration_ms=elapsed)

        if completed.returncode != 0:
            raise BackendProcessError(args, completed.returncode, completed.stderr)

        return CommandResult(
            argv=args,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
