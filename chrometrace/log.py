"""
Append-only store for emitted trace events.

Events keep the order they were appended in; nothing is ever dropped or
reordered, since the output must replay the Begin/End nesting exactly.
"""

from typing import Iterable, Iterator, List

from .events import Event


class EventLog:
    def __init__(self):
        self._events: List[Event] = []

    def append(self, event: Event) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[Event]) -> None:
        self._events.extend(events)

    def snapshot(self) -> List[Event]:
        """Return a copy of the events recorded so far."""
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.snapshot())
