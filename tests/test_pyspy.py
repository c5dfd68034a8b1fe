"""Tests for pyspy.py module."""
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from chrometrace.errors import SamplerError
from chrometrace.frames import Frame

DUMP_OUTPUT = """Process 4242: python train.py
Python v3.10.12 (/usr/bin/python3.10)

Thread 0x7F3A2B1C4700 (active): "MainThread"
    forward (model.py:88)
    train_step (train.py:41)
    <module> (train.py:120)
Thread 0x7F3A1A000640 (idle): "Thread-1 (worker)"
    wait (threading.py:324)
    run (threading.py:953)
"""


class TestParsePyspyOutput:
    """Test parsing py-spy dump text into Samples."""

    def test_threads_and_frames(self):
        from chrometrace.pyspy import parse_pyspy_output

        samples = parse_pyspy_output(4242, DUMP_OUTPUT)

        assert [(s.pid, s.thread_id, s.thread_name) for s in samples] == [
            (4242, 0x7F3A2B1C4700, "MainThread"),
            (4242, 0x7F3A1A000640, "Thread-1 (worker)"),
        ]
        assert samples[0].frames == (
            Frame("forward", "model.py", 88),
            Frame("train_step", "train.py", 41),
            Frame("<module>", "train.py", 120),
        )

    def test_traceback_style_and_native_frames(self):
        from chrometrace.pyspy import parse_pyspy_output

        output = (
            "Thread 1234 (active)\n"
            '  File "/srv/app.py", line 12, in handler\n'
            "  [native] epoll_wait\n"
        )
        samples = parse_pyspy_output(1, output)

        assert len(samples) == 1
        assert samples[0].thread_id == 1234
        assert samples[0].thread_name is None
        assert samples[0].frames == (
            Frame("handler", "/srv/app.py", 12),
            Frame("epoll_wait", "[native]", 0),
        )

    def test_thread_without_frames(self):
        from chrometrace.pyspy import parse_pyspy_output

        samples = parse_pyspy_output(1, 'Thread 0x10 (idle): "MainThread"\n')

        assert samples[0].frames == ()

    def test_empty_output(self):
        from chrometrace.pyspy import parse_pyspy_output

        assert parse_pyspy_output(1, "") == []


class TestFilterMainThread:
    """Test main-thread filtering."""

    def test_keeps_main_thread(self):
        from chrometrace.pyspy import filter_main_thread, parse_pyspy_output

        samples = filter_main_thread(parse_pyspy_output(1, DUMP_OUTPUT))

        assert [s.thread_name for s in samples] == ["MainThread"]

    def test_falls_back_to_all_threads(self):
        from chrometrace.pyspy import filter_main_thread, parse_pyspy_output

        samples = parse_pyspy_output(1, 'Thread 0x10 (idle): "worker"\n    run (w.py:1)\n')

        assert filter_main_thread(samples) == samples


class TestGetStackTraces:
    """Test running py-spy dump."""

    @patch('chrometrace.pyspy.subprocess.run')
    def test_returns_stdout(self, mock_run):
        from chrometrace.pyspy import get_stack_traces

        mock_run.return_value = MagicMock(stdout=DUMP_OUTPUT)

        assert get_stack_traces(4242) == DUMP_OUTPUT
        assert mock_run.call_args[0][0] == ['py-spy', 'dump', '--pid', '4242']

    @patch('chrometrace.pyspy.subprocess.run')
    def test_native_falls_back_to_plain_dump(self, mock_run):
        from chrometrace.pyspy import get_stack_traces

        mock_run.side_effect = [
            subprocess.CalledProcessError(1, "py-spy", stderr="native unwinding not supported"),
            MagicMock(stdout=DUMP_OUTPUT),
        ]

        assert get_stack_traces(4242, native=True) == DUMP_OUTPUT
        assert mock_run.call_args_list[0][0][0][-1] == '--native'
        assert '--native' not in mock_run.call_args_list[1][0][0]

    @patch('chrometrace.pyspy.subprocess.run')
    def test_failure_returns_empty(self, mock_run):
        from chrometrace.pyspy import get_stack_traces

        mock_run.side_effect = subprocess.CalledProcessError(1, "py-spy", stderr="Permission denied")

        assert get_stack_traces(4242) == ""

    @patch('chrometrace.pyspy.subprocess.run')
    def test_missing_pyspy_raises(self, mock_run):
        from chrometrace.pyspy import get_stack_traces

        mock_run.side_effect = FileNotFoundError("py-spy")

        with pytest.raises(SamplerError):
            get_stack_traces(4242)


class TestPidExists:
    """Test process liveness checks."""

    def test_non_positive_pid(self):
        from chrometrace.pyspy import pid_exists

        assert pid_exists(0) is False
        assert pid_exists(-1) is False

    @patch('chrometrace.pyspy.os.kill')
    def test_missing_process(self, mock_kill):
        from chrometrace.pyspy import pid_exists

        mock_kill.side_effect = ProcessLookupError()

        assert pid_exists(12345) is False

    @patch('chrometrace.pyspy.os.kill')
    def test_process_owned_by_other_user(self, mock_kill):
        from chrometrace.pyspy import pid_exists

        mock_kill.side_effect = PermissionError()

        assert pid_exists(1) is True
