"""
Sampling loop that feeds py-spy dumps into a Chrometrace engine.

All calls into the engine happen from the thread running ``run()``, one sample
at a time, which is what keeps per-thread stack diffs in time order.
"""

import logging
import os
import tempfile
import time
from typing import Dict, List, Optional

import portalocker

from .engine import Chrometrace
from .frames import Sample
from .pyspy import filter_main_thread, get_stack_traces, parse_pyspy_output, pid_exists

logger = logging.getLogger(__name__)


class StackSampler:
    def __init__(
        self,
        engine: Chrometrace,
        pids: List[int],
        interval: float = 0.1,
        duration: Optional[float] = None,
        main_thread_only: bool = True,
        native: bool = False,
    ):
        self.engine = engine
        self.pids = list(pids)
        self.interval = interval
        self.duration = duration
        self.main_thread_only = main_thread_only
        self.native = native
        self.sample_count = 0
        # pid -> {thread_id: thread_name} for threads seen at the previous tick
        self._live_threads: Dict[int, Dict[int, Optional[str]]] = {pid: {} for pid in self.pids}

    def _close_threads(self, pid: int, thread_ids: Dict[int, Optional[str]]) -> None:
        for thread_id, name in thread_ids.items():
            self.engine.increment(Sample(pid, thread_id, [], name))

    def _drop_pid(self, pid: int) -> None:
        self._close_threads(pid, self._live_threads.pop(pid, {}))
        self.pids.remove(pid)
        logger.info(f"PID {pid} not running; stop tracking")

    def sample_pid(self, pid: int) -> bool:
        """Feed one dump of ``pid`` to the engine. Returns False if nothing was captured."""
        output = get_stack_traces(pid, native=self.native)
        if not output:
            if not pid_exists(pid):
                self._drop_pid(pid)
            return False

        samples = parse_pyspy_output(pid, output)
        if self.main_thread_only:
            samples = filter_main_thread(samples)

        current: Dict[int, Optional[str]] = {}
        for sample in samples:
            self.engine.increment(sample)
            current[sample.thread_id] = sample.thread_name

        previous = self._live_threads.get(pid, {})
        gone = {tid: name for tid, name in previous.items() if tid not in current}
        self._close_threads(pid, gone)
        self._live_threads[pid] = current

        self.sample_count += 1
        return True

    def sample_once(self) -> None:
        for pid in list(self.pids):
            self.sample_pid(pid)

    def run(self) -> int:
        start_time = time.monotonic()
        next_tick = start_time

        logger.info(f"Sampling PIDs {','.join(map(str, self.pids))} every {self.interval} seconds")
        try:
            while self.pids:
                if self.duration and (time.monotonic() - start_time) >= self.duration:
                    break

                self.sample_once()
                if not self.pids:
                    logger.info("All specified PIDs have exited; stopping capture")
                    break

                next_tick += self.interval
                sleep_s = next_tick - time.monotonic()
                if sleep_s > 0:
                    time.sleep(sleep_s)
        except KeyboardInterrupt:
            logger.info("Stopped by user")

        logger.info(f"Total samples: {self.sample_count}")
        return self.sample_count


def write_trace(engine: Chrometrace, file_path: str) -> None:
    """
    Finalize ``engine`` into ``file_path``.

    The trace goes to a temp file in the same directory first and is moved
    into place under an exclusive lock on ``<file_path>.lock``, so readers
    never see a half-written array.
    """
    dir_name = os.path.dirname(os.path.abspath(file_path)) or "."
    os.makedirs(dir_name, exist_ok=True)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=dir_name, delete=False) as tf:
            tmp_path = tf.name
            engine.finalize_and_write(tf)
            tf.flush()
            os.fsync(tf.fileno())

        with open(file_path + ".lock", "w") as lock_fd:
            portalocker.lock(lock_fd, portalocker.LOCK_EX)
            try:
                os.replace(tmp_path, file_path)
            finally:
                portalocker.unlock(lock_fd)
        tmp_path = None
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass
