from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass(frozen=True)
class Frame:
    """One call-stack level."""

    name: str
    filename: str
    line: int = 0


@dataclass(frozen=True)
class Sample:
    """
    A snapshot of one thread's call stack at a single instant.

    frames are ordered innermost (currently executing) first and outermost
    (entry point) last, the way py-spy prints them. Any sequence is accepted
    and stored as a tuple, so the engine never shares a list with the caller.
    """

    pid: int
    thread_id: int
    frames: Sequence[Frame] = field(default_factory=tuple)
    thread_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "frames", tuple(self.frames))
