"""Subprocess execution and small path helpers shared by the VMM and remote layers."""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from shutil import which as _which
from typing import Optional, Sequence

from loguru import logger

log = logger


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str
    stderr: str


class CmdError(RuntimeError):
    """A PowerShell (or other) command exited non-zero."""

    def __init__(self, cmd: Sequence[str] | str, result: CmdResult):
        self.cmd = cmd
        self.result = result
        super().__init__(
            f'Command failed (code={result.code}): {_brief(cmd)}\n{result.stderr}'.strip()
        )


def _brief(cmd: Sequence[str] | str, limit: int = 200) -> str:
    # Generated scripts run to many lines; keep errors and logs readable.
    text = cmd if isinstance(cmd, str) else shell_join(cmd)
    if len(text) > limit:
        return text[: limit - 3] + '...'
    return text


def shell_join(cmd: Sequence[str]) -> str:
    return ' '.join(shlex.quote(c) for c in cmd)


def run_cmd(cmd: Sequence[str], *, check: bool = True) -> CmdResult:
    """Run ``cmd`` with captured text output.

    With ``check`` a non-zero exit raises :class:`CmdError` carrying both
    streams, which callers inspect to classify the failure.
    """
    log.opt(depth=1).debug('RUN: {}', _brief(cmd, 400))
    p = subprocess.run(list(cmd), capture_output=True, text=True)
    res = CmdResult(p.returncode, p.stdout or '', p.stderr or '')
    if p.returncode != 0:
        if check:
            log.opt(depth=1).error(
                'Command failed code={} cmd={} stderr={}',
                p.returncode,
                _brief(cmd),
                res.stderr.strip(),
            )
            raise CmdError(cmd, res)
        log.opt(depth=1).debug('Command exited code={} (unchecked)', p.returncode)
    return res


def which(cmd: str) -> Optional[str]:
    return _which(cmd)


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))
