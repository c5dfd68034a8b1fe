import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

# every emitted event carries this category
CATEGORY = "py-spy"


class Phase(enum.Enum):
    BEGIN = "B"
    END = "E"
    METADATA = "M"


@dataclass(frozen=True)
class Event:
    """A single Trace Event Format record."""

    phase: Phase
    ts: int
    pid: int
    tid: int
    name: str
    filename: Optional[str] = None
    line: Optional[int] = None
    thread_label: Optional[str] = None
    cat: str = CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        args: Dict[str, Any] = {}
        if self.filename is not None:
            args["filename"] = self.filename
        if self.line is not None:
            args["line"] = self.line
        if self.thread_label is not None:
            args["name"] = self.thread_label
        return {
            "args": args,
            "cat": self.cat,
            "name": self.name,
            "ph": self.phase.value,
            "pid": self.pid,
            "tid": self.tid,
            "ts": self.ts,
        }
