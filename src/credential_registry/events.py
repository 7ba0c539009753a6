# -*- encoding: utf-8 -*-
"""
Event sinks - the registry's externally observable event log.

The registry writes a CredentialRegistered event for every registration and
a CredentialVerified event for every successful verification. Where those
events go is decided by the caller through the EventSink passed to the
registry.

Usage:
    from credential_registry.events import InMemoryEventLog, JsonLinesEventLog

    log = InMemoryEventLog()
    registry = CredentialRegistry(event_sink=log)
    ...
    verified = log.events("CredentialVerified")

    # Durable log on disk
    durable = JsonLinesEventLog("events.jsonl")
    for event in durable.read_events():
        print(event.to_dict())
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from .models import RegistryEvent, event_from_dict

logger = logging.getLogger(__name__)


class EventSink(ABC):
    """Append-only destination for registry events."""

    @abstractmethod
    def record(self, event: RegistryEvent) -> None:
        """
        Append an event.

        Raising aborts the registry operation that produced the event.
        """


class InMemoryEventLog(EventSink):
    """Ordered, thread-safe in-process event log."""

    def __init__(self):
        self._events: List[RegistryEvent] = []
        self._lock = threading.Lock()

    def record(self, event: RegistryEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events(self, name: Optional[str] = None) -> List[RegistryEvent]:
        """All events in emission order, optionally only those named `name`."""
        with self._lock:
            events = list(self._events)
        if name is not None:
            events = [e for e in events if e.name == name]
        return events

    def clear(self) -> None:
        """Drop all recorded events (for testing)."""
        with self._lock:
            self._events = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class JsonLinesEventLog(EventSink):
    """
    Durable event log: one JSON object per line, appended and flushed on
    every record.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, event: RegistryEvent) -> None:
        line = json.dumps(event.to_dict(), sort_keys=True, separators=(",", ":"))
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
                fh.flush()
        logger.debug(f"Appended {event.name} to {self.path}")

    def read_events(self) -> Iterator[RegistryEvent]:
        """Replay recorded events in order."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{self.path}:{lineno}: invalid event line: {e}") from e
                yield event_from_dict(data)


class LoggingEventSink(EventSink):
    """Writes each event to a logger."""

    def __init__(self, event_logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._logger = event_logger or logger
        self._level = level

    def record(self, event: RegistryEvent) -> None:
        self._logger.log(self._level, f"{event.name}: {json.dumps(event.to_dict(), sort_keys=True)}")


class FanoutEventSink(EventSink):
    """
    Forwards every event to several sinks, in order.

    The first sink that raises stops the fan-out and the error propagates.
    """

    def __init__(self, sinks: Sequence[EventSink]):
        self._sinks = list(sinks)

    @property
    def sinks(self) -> List[EventSink]:
        return list(self._sinks)

    def record(self, event: RegistryEvent) -> None:
        for sink in self._sinks:
            sink.record(event)
