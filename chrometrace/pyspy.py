"""
Capture stacks from a live Python process with ``py-spy dump`` and turn the
text output into Samples.

A dump looks like::

    Process 4242: python train.py
    Python v3.10.12 (/usr/bin/python3.10)

    Thread 0x7F3A2B1C4700 (active): "MainThread"
        forward (model.py:88)
        <module> (train.py:120)

Frames under each ``Thread`` header are listed innermost first, which is
already the order a Sample expects.
"""

import logging
import os
import re
import subprocess
from typing import Iterator, List, Optional, Tuple

from .errors import SamplerError
from .frames import Frame, Sample

logger = logging.getLogger(__name__)

MAIN_THREAD = "MainThread"
NATIVE_FILENAME = "[native]"


def pid_exists(pid: int) -> bool:
    """Signal 0 probes the process without touching it."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # alive, owned by another user
        pass
    return True


def _dump_commands(pid: int, native: bool) -> Iterator[List[str]]:
    base = ['py-spy', 'dump', '--pid', str(pid)]
    if native:
        # not every platform can unwind native stacks
        yield base + ['--native']
    yield base


def get_stack_traces(pid: int, native: bool = False) -> str:
    """Return the text of one ``py-spy dump`` of ``pid``, or "" on failure."""
    errors: List[str] = []
    for cmd in _dump_commands(pid, native):
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise SamplerError("py-spy not found; install it with `pip install py-spy`") from e
        except subprocess.CalledProcessError as e:
            errors.append((e.stderr or "").strip() or f"exit status {e.returncode}")
            continue
        return result.stdout

    logger.error(f"Failed to capture stack traces for PID {pid}: {errors[-1] if errors else ''}")
    return ""


_THREAD_RE = re.compile(r'^Thread\s+(?P<tid>\S+)(?P<rest>.*)$')
_QUOTED_RE = re.compile(r'"(?P<name>[^"]+)"')
# tried in order; the first match wins
_FRAME_RES = (
    re.compile(r'^\s*File\s+"(?P<filename>[^"]+)",\s+line\s+(?P<line>\d+),\s+in\s+(?P<name>.+?)\s*$'),
    re.compile(r'^\s*\[native\]\s+(?P<name>.+?)\s*$'),
    re.compile(r'^\s*(?P<name>.+?)\s+\((?P<filename>.+):(?P<line>\d+)\)\s*$'),
)


def _parse_tid(token: str) -> int:
    try:
        return int(token, 0) if token.lower().startswith("0x") else int(token)
    except ValueError:
        return 0


def _parse_thread_name(rest: str) -> Optional[str]:
    m = _QUOTED_RE.search(rest)
    if m:
        return m.group("name")
    if ":" in rest:
        return rest.split(":", 1)[1].strip().strip('"') or None
    return None


def _parse_frame(line: str) -> Optional[Frame]:
    for pattern in _FRAME_RES:
        m = pattern.match(line)
        if m is None:
            continue
        fields = m.groupdict()
        return Frame(
            name=fields["name"],
            filename=fields.get("filename") or NATIVE_FILENAME,
            line=int(fields.get("line") or 0),
        )
    return None


def parse_pyspy_output(pid: int, pyspy_output: str) -> List[Sample]:
    """Parse py-spy dump text output into one Sample per thread."""
    threads: List[Tuple[int, Optional[str], List[Frame]]] = []

    for line in (pyspy_output or "").splitlines():
        header = _THREAD_RE.match(line)
        if header:
            threads.append((_parse_tid(header.group("tid")), _parse_thread_name(header.group("rest")), []))
            continue

        # anything before the first thread is process info
        if not threads:
            continue

        frame = _parse_frame(line)
        if frame is not None:
            threads[-1][2].append(frame)

    return [Sample(pid, tid, frames, name) for tid, name, frames in threads]


def filter_main_thread(samples: List[Sample]) -> List[Sample]:
    main = [s for s in samples if s.thread_name == MAIN_THREAD]
    return main or samples
