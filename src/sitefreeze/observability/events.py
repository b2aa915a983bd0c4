"""Run event model.

Defines the event types recorded during one generation run: stage
transitions, external commands, working-tree cleanup, page writes,
backend notes and the terminal failure.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- ``describe()``: One-line human-readable rendering

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import shlex
import time
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StageEntered:
    """The orchestrator moved to a new state.

    Attributes:
        state: Name of the state entered (e.g. ``"initialized"``).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    state: str
    timestamp_ns: int

    def describe(self) -> str:
        return f"stage {self.state}"


@dataclass(frozen=True, slots=True)
class CommandStarted:
    """An external command is about to run.

    Recorded before the process is spawned, so a hung or crashed command
    still shows up in the log.

    Attributes:
        argv: Full argument vector.
        cwd: Working directory of the process.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    argv: tuple[str, ...]
    cwd: str
    timestamp_ns: int

    def describe(self) -> str:
        return f"run {shlex.join(self.argv)} (in {self.cwd})"


@dataclass(frozen=True, slots=True)
class CommandFinished:
    """An external command completed.

    Attributes:
        argv: Full argument vector.
        returncode: Exit status, or None if the command never completed.
        duration_ms: Wall-clock time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    argv: tuple[str, ...]
    returncode: int | None
    duration_ms: float
    timestamp_ns: int

    def describe(self) -> str:
        status = "did not complete" if self.returncode is None else f"exit {self.returncode}"
        return f"done {shlex.join(self.argv)}: {status} in {self.duration_ms:.0f}ms"


@dataclass(frozen=True, slots=True)
class EntryRemoved:
    """A stale entry was deleted from the backend working directory."""

    path: str
    timestamp_ns: int

    def describe(self) -> str:
        return f"remove {self.path}"


@dataclass(frozen=True, slots=True)
class PageWritten:
    """A fetched route was written to the backend.

    Attributes:
        url: URL the bytes were fetched from.
        target: Target path relative to the backend root.
        size_bytes: Bytes written.
        duration_ms: Fetch + write time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    url: str
    target: str
    size_bytes: int
    duration_ms: float
    timestamp_ns: int

    def describe(self) -> str:
        return f"write {self.target} <- {self.url} ({self.size_bytes} bytes)"


@dataclass(frozen=True, slots=True)
class BackendNote:
    """A backend action that is not an external command."""

    backend: str
    message: str
    timestamp_ns: int

    def describe(self) -> str:
        return f"{self.backend}: {self.message}"


@dataclass(frozen=True, slots=True)
class RunFailed:
    """The run stopped with an error.

    Attributes:
        state: State the run was in when the error was raised.
        code: Structured error code.
        message: Error message.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    state: str
    code: int
    message: str
    timestamp_ns: int

    def describe(self) -> str:
        return f"failed in {self.state}: [{self.code}] {self.message}"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type RunEvent = (
    StageEntered
    | CommandStarted
    | CommandFinished
    | EntryRemoved
    | PageWritten
    | BackendNote
    | RunFailed
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
