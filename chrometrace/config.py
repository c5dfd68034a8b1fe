import argparse
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

DEFAULT_OUTPUT = "stack_trace.json"


def _env_flag(name: str) -> bool:
    return int(os.environ.get(name, "0") or 0) == 1


def normalize_pids(pid_args: Sequence[str]) -> List[int]:
    """Accept repeated and/or comma-separated pids, keeping first-seen order."""
    tokens = [token for arg in pid_args for token in re.split(r"[,\s]+", arg) if token]
    if not tokens:
        raise ValueError("empty pid list")
    return list(dict.fromkeys(int(token) for token in tokens))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chrometrace',
        description='Sample Python stacks with py-spy and write a Chrome Trace Event file',
    )
    parser.add_argument(
        '-p',
        '--pid',
        dest='pids',
        action='append',
        required=True,
        help='Process ID list. Repeatable (-p 1 -p 2) or comma-separated (-p 1,2).',
    )
    parser.add_argument('-i', '--interval', type=float, default=0.1, help='Sampling interval in seconds')
    parser.add_argument(
        '-o',
        '--output',
        type=str,
        default=os.environ.get("CHROMETRACE_OUTPUT", DEFAULT_OUTPUT),
        help='Output JSON file path (default: $CHROMETRACE_OUTPUT or stack_trace.json)',
    )
    parser.add_argument('-d', '--duration', type=float, help='Duration to run in seconds (optional)')
    parser.add_argument(
        '--linenumbers',
        dest='show_linenumbers',
        action='store_true',
        help='Record line numbers and split intervals when the line changes',
    )
    parser.add_argument('--all-threads', action='store_true', help='Capture all threads (default: only MainThread)')
    parser.add_argument('--native', action='store_true', help='Ask py-spy for native frames too')
    parser.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        default=_env_flag("CHROMETRACE_VERBOSE"),
        help='Enable verbose logging (or set CHROMETRACE_VERBOSE=1)',
    )
    return parser


@dataclass
class SamplerConfig:
    pids: List[int] = field(default_factory=list)
    interval: float = 0.1
    duration: Optional[float] = None
    output: str = DEFAULT_OUTPUT
    show_linenumbers: bool = False
    all_threads: bool = False
    native: bool = False
    verbose: bool = False

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> "SamplerConfig":
        parser = build_parser()
        args = parser.parse_args(argv)

        try:
            pids = normalize_pids(args.pids)
        except ValueError as e:
            parser.error(f"invalid --pid: {e}")

        if args.interval <= 0:
            parser.error("--interval must be positive")

        return cls(
            pids=pids,
            interval=args.interval,
            duration=args.duration,
            output=args.output,
            show_linenumbers=args.show_linenumbers,
            all_threads=args.all_threads,
            native=args.native,
            verbose=args.verbose,
        )
