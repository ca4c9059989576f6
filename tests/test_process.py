import sys

import pytest

from traptools.process import exec_child


def test_exit_status_is_returned():
    assert exec_child([sys.executable, "-c", "import sys; sys.exit(3)"]) == 3


def test_success_is_zero():
    assert exec_child([sys.executable, "-c", "pass"], quiet=True) == 0


def test_output_is_shown_when_not_quiet(capfd):
    exec_child([sys.executable, "-c", "print('hello')"], quiet=False)
    assert capfd.readouterr().out.strip() == "hello"


def test_quiet_discards_output(capfd):
    status = exec_child(
        [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        quiet=True,
    )
    captured = capfd.readouterr()
    assert status == 0
    assert captured.out == ""
    assert captured.err == ""


def test_missing_program_reports_exec_failure():
    assert exec_child(["traptools-no-such-program-xyz"], quiet=True) == 255


def test_killed_child_reports_zero():
    code = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"
    assert exec_child([sys.executable, "-c", code], quiet=True) == 0


def test_empty_arguments_rejected():
    with pytest.raises(ValueError):
        exec_child([])