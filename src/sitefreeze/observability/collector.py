"""Run collector: the recording interface handed to every run component.

Wraps an ``EventLog`` with one method per event kind so that backends,
the command runner and the orchestrator record events without building
event objects themselves.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe for concurrent use from write workers and enumeration threads.

"""

from __future__ import annotations

from sitefreeze.observability.events import (
    BackendNote,
    CommandFinished,
    CommandStarted,
    EntryRemoved,
    PageWritten,
    RunFailed,
    StageEntered,
    now_ns,
)
from sitefreeze.observability.log import EventLog


class RunCollector:
    """Event recorder scoped to a single generation run.

    Args:
        log: The EventLog to store events in (a fresh one when omitted).

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Orchestrator -----

    def record_stage(self, state: str) -> None:
        """Record a state-machine transition."""
        self._log.append(StageEntered(state=state, timestamp_ns=now_ns()))

    def record_failure(self, state: str, code: int, message: str) -> None:
        """Record the error that ended the run."""
        self._log.append(
            RunFailed(state=state, code=code, message=message, timestamp_ns=now_ns())
        )

    def record_write(
        self,
        url: str,
        target: str,
        *,
        size_bytes: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a completed fetch + write."""
        self._log.append(
            PageWritten(
                url=url,
                target=target,
                size_bytes=size_bytes,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Backends -----

    def record_command(self, argv: tuple[str, ...], cwd: str) -> None:
        """Record an external command before it runs."""
        self._log.append(CommandStarted(argv=argv, cwd=cwd, timestamp_ns=now_ns()))

    def record_command_result(
        self,
        argv: tuple[str, ...],
        returncode: int | None,
        *,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the outcome of an external command."""
        self._log.append(
            CommandFinished(
                argv=argv,
                returncode=returncode,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_removal(self, path: str) -> None:
        """Record deletion of a working-directory entry."""
        self._log.append(EntryRemoved(path=path, timestamp_ns=now_ns()))

    def record_note(self, backend: str, message: str) -> None:
        """Record a backend action that is not an external command."""
        self._log.append(BackendNote(backend=backend, message=message, timestamp_ns=now_ns()))
