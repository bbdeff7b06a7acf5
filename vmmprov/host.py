"""Host prerequisite checks for the local management workstation."""

from __future__ import annotations

from typing import Optional

from .runtime import SHELL_CANDIDATES
from .util import which


def find_shell(preferred: str = '') -> Optional[str]:
    """Return the first PowerShell executable found, trying ``preferred`` first."""
    order = [preferred] if preferred else []
    order += [c for c in SHELL_CANDIDATES if c != preferred]
    for cand in order:
        if which(cand) is not None:
            return cand
    return None


def check_commands(preferred_shell: str = '') -> list[str]:
    if find_shell(preferred_shell) is None:
        return [preferred_shell or ' or '.join(SHELL_CANDIDATES)]
    return []
