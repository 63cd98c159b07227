"""Unit tests for wgnexus.tunnel.utils.run_with_timeout."""

from __future__ import annotations

import os
import shutil
import time

import pytest

from wgnexus.tunnel.exceptions import ProcessError
from wgnexus.tunnel.utils import run_with_timeout

pytestmark = pytest.mark.usefixtures("posix_only")


def test_returns_exit_code_and_stdout() -> None:
    code, output = run_with_timeout(["sh", "-c", "echo hello; exit 3"], 5)
    assert code == 3
    assert output == "hello\n"


def test_successful_command() -> None:
    assert run_with_timeout(["sh", "-c", "printf 'a\\nb\\n'"], 5) == (0, "a\nb\n")


def test_stderr_is_not_returned() -> None:
    code, output = run_with_timeout(["sh", "-c", "echo oops >&2"], 5)
    assert code == 0
    assert output == ""


def test_timeout_kills_process_and_keeps_partial_output() -> None:
    start = time.monotonic()
    code, output = run_with_timeout(["sh", "-c", "echo $$; exec sleep 30"], 1)
    elapsed = time.monotonic() - start

    assert elapsed < 10
    assert code is None
    pid = int(output.strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_timeout_kills_whole_process_group() -> None:
    # the backgrounded sleep holds stdout open; the call only returns once it is dead too
    start = time.monotonic()
    code, output = run_with_timeout(["sh", "-c", "sleep 30 & echo started; wait"], 1)
    assert time.monotonic() - start < 10
    assert code is None
    assert output == "started\n"


def test_invalid_utf8_is_replaced() -> None:
    code, output = run_with_timeout(["sh", "-c", "printf 'a\\377b'"], 5)
    assert code == 0
    assert output == "a\ufffdb"


def test_missing_binary_raises_process_error(tmp_path) -> None:
    with pytest.raises(ProcessError, match="Could not start"):
        run_with_timeout([str(tmp_path / "no-such-tool"), "show"], 1)


@pytest.mark.skipif(shutil.which("setsid") is None, reason="needs setsid")
def test_timeout_does_not_wait_for_detached_descendant() -> None:
    # the setsid'd sleep escapes the process group kill but keeps stdout open
    start = time.monotonic()
    code, _ = run_with_timeout(["sh", "-c", "setsid sleep 30 & sleep 30"], 1)
    assert time.monotonic() - start < 10
    assert code is None
