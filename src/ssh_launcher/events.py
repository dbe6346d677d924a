"""
Event system for ssh-launcher.

Structured events describing what the launcher did, for tests and for
`--events` output on the command line.

Event types:
- SCAN: SSH config files scanned into the host catalog
- QUERY: A query was parsed and ranked
- LAUNCH: A result action was handed to the terminal launcher
- SETTINGS: A command template was changed or reset
- ERROR: An activation or settings error

All events include:
- timestamp: Unix timestamp in milliseconds
- event_type: One of the above types
- data: Event-specific structured data
"""
from __future__ import annotations

import json
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any, Callable, Iterable, Iterator

EventSink = Callable[["Event"], None]


class EventType(str, Enum):
    """Launcher event types for structured logging."""
    SCAN = "SCAN"
    QUERY = "QUERY"
    LAUNCH = "LAUNCH"
    SETTINGS = "SETTINGS"
    ERROR = "ERROR"


@dataclass
class Event:
    """
    A single launcher event.

    - event_type: The category of event
    - timestamp: When the event occurred (Unix ms)
    - data: Event-specific structured data
    """
    event_type: str
    timestamp: float = field(default_factory=lambda: time.time() * 1000)
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        valid_types = {e.value for e in EventType}
        assert self.event_type in valid_types, \
            f"Invalid event_type '{self.event_type}'. Must be one of: {valid_types}"
        assert self.timestamp > 0, \
            f"Timestamp must be positive, got {self.timestamp}"

    def to_json(self) -> str:
        """Serialise event to a single-line JSON string."""
        return json.dumps(asdict(self), default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        """Deserialise event from JSON string."""
        data = json.loads(json_str)
        return cls(
            event_type=data["event_type"],
            timestamp=data["timestamp"],
            data=data.get("data", {}),
        )


class EventCollector:
    """Keeps events in memory; used by tests and the CLI."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def __call__(self, event: Event) -> None:
        assert isinstance(event, Event), f"Expected Event, got {type(event)}"
        self._events.append(event)

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def get_by_type(self, event_type: str | EventType) -> list[Event]:
        """Get all events of a specific type."""
        if isinstance(event_type, EventType):
            event_type = event_type.value
        return [e for e in self._events if e.event_type == event_type]


class JSONLEventWriter:
    """Writes each event as one JSON line to an open text stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    def __call__(self, event: Event) -> None:
        self._stream.write(event.to_json() + "\n")
        self._stream.flush()


class EventEmitter:
    """
    Dispatches events to any number of sinks.

    A sink is any callable taking an Event; EventCollector and
    JSONLEventWriter are the two shipped here.
    """

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks: list[EventSink] = list(sinks)

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event_type: str | EventType, **data: Any) -> Event:
        """
        Create and emit an event.

        Args:
            event_type: The type of event
            **data: Event-specific data

        Returns:
            The created event
        """
        if isinstance(event_type, EventType):
            event_type = event_type.value

        event = Event(event_type=event_type, data=data)
        for sink in self._sinks:
            sink(event)
        return event

    @contextmanager
    def timed_event(
        self,
        event_type: str | EventType,
        **initial_data: Any,
    ) -> Iterator[dict[str, Any]]:
        """
        Context manager for timing an operation.

        Emits the event on exit with duration_ms added to data.

        Usage:
            with emitter.timed_event(EventType.QUERY, query="web") as data:
                items = handler.rank(...)
                data["match_count"] = len(items)
        """
        start_ms = time.time() * 1000
        event_data = dict(initial_data)

        try:
            yield event_data
        finally:
            event_data["duration_ms"] = (time.time() * 1000) - start_ms
            self.emit(event_type, **event_data)


def read_jsonl_events(source: Path | str | IO[str]) -> list[Event]:
    """
    Read all events from JSONL.

    Args:
        source: Path to a JSONL file, or an open text stream such as
            the one a JSONLEventWriter wrote to

    Returns:
        List of Event objects
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        assert path.exists(), f"JSONL file not found: {path}"
        with open(path, "r", encoding="utf-8") as f:
            return _parse_lines(f)
    return _parse_lines(source)


def _parse_lines(lines: Iterable[str]) -> list[Event]:
    events = []
    for line in lines:
        line = line.strip()
        if line:
            events.append(Event.from_json(line))
    return events
