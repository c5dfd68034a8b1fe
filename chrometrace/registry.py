import logging
from typing import Dict, Tuple

from .events import Event, Phase
from .frames import Sample
from .log import EventLog

logger = logging.getLogger(__name__)


class ThreadIdRegistry:
    """
    Remaps native thread ids onto dense 32-bit ids in first-seen order.

    Perfetto only accepts 32-bit thread ids, while py-spy reports pthread ids
    that are 64 bits wide and sparse. Threads are keyed by ``(pid, thread_id)``
    since forked workers share the pthread id of their main thread. The first
    time a thread shows up a ``thread_name`` metadata event is appended to the
    log.
    """

    def __init__(self, log: EventLog):
        self._log = log
        self._ids: Dict[Tuple[int, int], int] = {}

    def resolve(self, sample: Sample) -> int:
        key = (sample.pid, sample.thread_id)
        tid = self._ids.get(key)
        if tid is not None:
            return tid

        tid = len(self._ids)
        self._ids[key] = tid
        label = f"{sample.thread_id}: {sample.thread_name or ''}"
        self._log.append(
            Event(
                phase=Phase.METADATA,
                ts=0,
                pid=sample.pid,
                tid=tid,
                name="thread_name",
                thread_label=label,
            )
        )
        logger.debug(f"New thread {sample.thread_id} of PID {sample.pid} mapped to tid {tid}")
        return tid

    def get(self, pid: int, thread_id: int) -> int:
        return self._ids[(pid, thread_id)]

    def __contains__(self, key: Tuple[int, int]) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)
