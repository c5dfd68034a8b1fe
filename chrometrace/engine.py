"""
Turns sampled call stacks into nested Begin/End trace intervals.

Usage:
    engine = Chrometrace(show_linenumbers=False)
    for sample in samples:
        engine.increment(sample)
    with open("trace.json", "w") as f:
        engine.finalize_and_write(f)

Only the frames that changed between two consecutive samples of a thread
produce events, so a function that stays on the stack for many samples ends up
as one long interval.
"""

import json
import logging
import time
from typing import Callable, Dict, List, Sequence, TextIO, Tuple

from .errors import SerializationError, SinkError
from .events import Event, Phase
from .frames import Frame, Sample
from .log import EventLog
from .registry import ThreadIdRegistry

logger = logging.getLogger(__name__)


class Chrometrace:
    def __init__(self, show_linenumbers: bool = False, clock: Callable[[], int] = time.monotonic_ns):
        self.show_linenumbers = show_linenumbers
        self._clock = clock
        self._start_ns = clock()
        self._log = EventLog()
        self._threads = ThreadIdRegistry(self._log)
        self._prev_samples: Dict[Tuple[int, int], Sample] = {}

    def elapsed_us(self) -> int:
        return (self._clock() - self._start_ns) // 1000

    @property
    def events(self) -> List[Event]:
        return self._log.snapshot()

    def open_threads(self) -> List[Tuple[int, int]]:
        """``(pid, thread_id)`` of threads that still have an unterminated stack."""
        return list(self._prev_samples.keys())

    def should_merge_frames(self, a: Frame, b: Frame) -> bool:
        # Frames similar enough to extend one interval instead of starting a new one.
        return (
            a.name == b.name
            and a.filename == b.filename
            and (not self.show_linenumbers or a.line == b.line)
        )

    def shared_depth(self, prev_frames: Sequence[Frame], frames: Sequence[Frame]) -> int:
        """Count of equal frames, walking from the root toward the leaf."""
        depth = 0
        for a, b in zip(reversed(prev_frames), reversed(frames)):
            if not self.should_merge_frames(a, b):
                break
            depth += 1
        return depth

    def _event(self, sample: Sample, frame: Frame, phase: Phase, ts: int) -> Event:
        return Event(
            phase=phase,
            ts=ts,
            pid=sample.pid,
            tid=self._threads.get(sample.pid, sample.thread_id),
            name=frame.name,
            filename=frame.filename,
            line=frame.line if self.show_linenumbers else None,
        )

    def _close(self, sample: Sample, frames: Sequence[Frame], ts: int) -> List[Event]:
        # frames are innermost first, which is the order they must be closed in
        return [self._event(sample, frame, Phase.END, ts) for frame in frames]

    def increment(self, sample: Sample) -> None:
        now = self.elapsed_us()

        self._threads.resolve(sample)

        key = (sample.pid, sample.thread_id)
        prev = self._prev_samples.get(key)
        prev_frames = prev.frames if prev is not None else ()

        depth = self.shared_depth(prev_frames, sample.frames)

        # previous frames that are gone, innermost first
        dropped = prev_frames[: len(prev_frames) - depth]
        events = self._close(sample, dropped, now)

        # new frames, starting next to the shared ancestor
        added = sample.frames[: len(sample.frames) - depth]
        events.extend(self._event(sample, frame, Phase.BEGIN, now) for frame in reversed(added))

        self._log.extend(events)
        if sample.frames:
            self._prev_samples[key] = sample
        else:
            self._prev_samples.pop(key, None)

    def finalize_and_write(self, sink: TextIO) -> None:
        """
        Write every event as one JSON array on a single line.

        Stacks that are still open get End events at the current time. Those
        closing events only go to the output, so engine state is untouched and
        the call can be repeated.
        """
        events = self._log.snapshot()

        now = self.elapsed_us()
        for sample in self._prev_samples.values():
            events.extend(self._close(sample, sample.frames, now))

        logger.debug(f"Writing {len(events)} events, {len(self._prev_samples)} open stacks closed")

        try:
            payload = json.dumps([event.to_dict() for event in events])
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to encode trace events: {e}") from e

        try:
            sink.write(payload + "\n")
        except OSError as e:
            raise SinkError(e.errno, f"failed to write trace: {e.strerror or e}") from e
        except ValueError as e:
            # closed or detached file objects
            raise SinkError(None, f"failed to write trace: {e}") from e
