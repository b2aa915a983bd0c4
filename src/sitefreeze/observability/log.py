"""Event log: ordered, append-only, thread-safe record of one run.

Every side-effecting action of a generation run is appended here.  The log
is created per run, passed explicitly to every component that records
events, and returned with the run result (on failure too) for post-mortem
diagnosis.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe for
    concurrent appends from enumeration threads and write workers.

"""

import threading
from collections.abc import Iterator
from typing import Any

from sitefreeze.observability.events import RunEvent


class EventLog:
    """Append-only event store with query support.

    Events are never discarded or reordered for the lifetime of the log.

    """

    __slots__ = ("_events", "_lock")

    def __init__(self) -> None:
        self._events: list[RunEvent] = []
        self._lock = threading.Lock()

    def append(self, event: RunEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int | None = None,
    ) -> list[RunEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events at or after this timestamp (nanoseconds).
            path: Only return events whose target, path, url or command
                contains this substring.
            limit: Maximum number of events to return.

        Returns:
            List of matching events in recording order.

        """
        with self._lock:
            events = list(self._events)

        results: list[RunEvent] = []
        for event in events:
            if limit is not None and len(results) >= limit:
                break

            if event_type is not None and not isinstance(event, event_type):
                continue

            if since_ns and event.timestamp_ns < since_ns:
                continue

            if path is not None and path not in _event_path(event):
                continue

            results.append(event)

        return results

    def recent(self, n: int = 20) -> list[RunEvent]:
        """Return the N most recent events."""
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def lines(self) -> list[str]:
        """Render every event as one text line, in order."""
        with self._lock:
            items = list(self._events)
        return [event.describe() for event in items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __iter__(self) -> Iterator[RunEvent]:
        with self._lock:
            items = list(self._events)
        return iter(items)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        with self._lock:
            events = list(self._events)

        type_counts: dict[str, int] = {}
        for event in events:
            name = type(event).__name__
            type_counts[name] = type_counts.get(name, 0) + 1

        return {
            "total": len(events),
            "by_type": type_counts,
        }


def _event_path(event: RunEvent) -> str:
    for attr in ("target", "path", "url"):
        value = getattr(event, attr, None)
        if value:
            return str(value)
    argv = getattr(event, "argv", None)
    if argv:
        return " ".join(argv)
    return ""
