"""A min-heap of timestamped events with cancellation and rescheduling."""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, Optional

HeapTimerFunction = Callable[["HeapTimer", "HeapTimerEvent"], None]


class _Entry:
    __slots__ = ("event", "seq")

    def __init__(self, event: HeapTimerEvent, seq: int) -> None:
        self.event: Optional[HeapTimerEvent] = event
        self.seq = seq

    def _key(self) -> tuple[int, int]:
        return (self.event.timestamp if self.event else 0, self.seq)

    def __lt__(self, other: _Entry) -> bool:
        return self._key() < other._key()


class HeapTimerEvent:
    """An event that a HeapTimer fires at its timestamp."""

    def __init__(self, func: Optional[HeapTimerFunction] = None) -> None:
        self.func = func
        self.timer: Optional[HeapTimer] = None
        self._timestamp = 0
        self._entry: Optional[_Entry] = None

    @property
    def timestamp(self) -> int:
        return self._timestamp

    @property
    def scheduled(self) -> bool:
        return self._entry is not None

    def callback(self) -> None:
        """Call the event function with the owning timer and this event."""
        if self.func:
            self.func(self.timer, self)

    def detach(self) -> None:
        """Remove the event from its timer, if it is scheduled."""
        if self._entry is not None:
            self._entry.event = None
            self._entry = None
            self.timer = None


class HeapTimer:
    """Events ordered by timestamp, earliest first."""

    def __init__(self) -> None:
        self._heap: list[_Entry] = []
        self._seq = itertools.count()

    def set_event(self, event: HeapTimerEvent, timestamp: int) -> None:
        """Schedule ``event`` at ``timestamp``, moving it if already scheduled here."""
        if timestamp < 0:
            raise ValueError("timestamp must not be negative")
        if event._entry is not None:
            if event.timer is not self:
                raise ValueError("event is scheduled in another timer")
            if event._timestamp != timestamp:
                event._timestamp = timestamp
                heapq.heapify(self._heap)
            return
        event._timestamp = timestamp
        entry = _Entry(event, next(self._seq))
        heapq.heappush(self._heap, entry)
        event.timer = self
        event._entry = entry

    def add_callback(self, func: HeapTimerFunction, timestamp: int) -> HeapTimerEvent:
        """Create an event for ``func``, schedule it and return it."""
        event = HeapTimerEvent(func)
        self.set_event(event, timestamp)
        return event

    def clear_events(self) -> None:
        """Unschedule every event."""
        for entry in self._heap:
            if entry.event is not None:
                entry.event.timer = None
                entry.event._entry = None
        self._heap.clear()

    def pop_timeout_event(self, timestamp: int) -> Optional[HeapTimerEvent]:
        """Remove and return the earliest event due at ``timestamp``, or None."""
        while self._heap:
            event = self._heap[0].event
            if event is not None and event._timestamp > timestamp:
                break
            heapq.heappop(self._heap)
            if event is None:
                continue
            event._entry = None
            return event
        return None

    def next_timestamp(self) -> Optional[int]:
        """Return the earliest scheduled timestamp, or None if nothing is scheduled."""
        while self._heap:
            event = self._heap[0].event
            if event is not None:
                return event._timestamp
            heapq.heappop(self._heap)
        return None