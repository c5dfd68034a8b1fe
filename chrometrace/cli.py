import logging
from typing import Optional, Sequence

from .config import SamplerConfig
from .engine import Chrometrace
from .errors import ChrometraceError
from .pyspy import pid_exists
from .sampler import StackSampler, write_trace

logger = logging.getLogger("chrometrace")


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = SamplerConfig.from_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    if config.verbose:
        logger.setLevel(logging.DEBUG)

    alive = [pid for pid in config.pids if pid_exists(pid)]
    missing = [pid for pid in config.pids if pid not in alive]
    if missing:
        logger.warning(f"Specified PIDs not running and will be skipped: {','.join(map(str, missing))}")

    engine = Chrometrace(show_linenumbers=config.show_linenumbers)
    sampler = StackSampler(
        engine,
        alive,
        interval=config.interval,
        duration=config.duration,
        main_thread_only=not config.all_threads,
        native=config.native,
    )

    failed = False
    try:
        if alive:
            sampler.run()
        else:
            logger.info("All specified PIDs are not running; saving empty trace")
    except ChrometraceError as e:
        logger.error(f"Sampling failed: {e}")
        failed = True

    try:
        write_trace(engine, config.output)
    except ChrometraceError as e:
        logger.error(f"Failed to save trace to {config.output}: {e}")
        return 1

    logger.info(f"Chrome Tracing file saved to: {config.output}")
    logger.info("To view, open https://ui.perfetto.dev or chrome://tracing and load the file")
    return 1 if failed else 0
