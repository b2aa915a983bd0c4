"""Run observability: ordered event log of every side-effecting action.

Records stage transitions, external commands (before they run), working
tree cleanup, page writes and the terminal failure of a generation run.

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from multiple write workers.

Quick Start:
    >>> from sitefreeze.observability import EventLog, RunCollector
    >>> log = EventLog()
    >>> collector = RunCollector(log)
    >>> collector.record_stage("initialized")
    >>> log.lines()
    ['stage initialized']

"""

from sitefreeze.observability.collector import RunCollector
from sitefreeze.observability.events import (
    BackendNote,
    CommandFinished,
    CommandStarted,
    EntryRemoved,
    PageWritten,
    RunEvent,
    RunFailed,
    StageEntered,
    now_ns,
)
from sitefreeze.observability.log import EventLog

__all__ = [
    "BackendNote",
    "CommandFinished",
    "CommandStarted",
    "EntryRemoved",
    "EventLog",
    "PageWritten",
    "RunCollector",
    "RunEvent",
    "RunFailed",
    "StageEntered",
    "now_ns",
]
