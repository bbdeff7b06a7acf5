from __future__ import annotations

import pytest

from vmmprov.util import CmdError, CmdResult, shell_join
from vmmprov.util import run_cmd as _run_cmd


def test_shell_join_quotes() -> None:
    cmd = ["echo", "a b", "c'd"]
    s = shell_join(cmd)
    assert "a b" in s
    assert "echo" in s


def test_run_cmd_success_and_failure() -> None:
    ok = _run_cmd(["sh", "-c", "printf ok"])
    assert ok.code == 0
    assert ok.stdout == "ok"
    bad = _run_cmd(["sh", "-c", "echo nope >&2; exit 7"], check=False)
    assert bad.code == 7
    assert bad.stderr.strip() == "nope"
    with pytest.raises(CmdError) as exc:
        _run_cmd(["sh", "-c", "echo denied >&2; exit 9"])
    assert exc.value.result.code == 9
    assert "denied" in str(exc.value)


def test_cmd_error_message_truncates_long_scripts() -> None:
    cmd = ["powershell", "-Command", "x" * 1000]
    err = CmdError(cmd, CmdResult(1, "", "boom"))
    first_line = str(err).splitlines()[0]
    assert len(first_line) < 300
    assert first_line.endswith("...")
    assert "boom" in str(err)
    assert err.result.code == 1
