"""Runtime helpers for constructing PowerShell command arguments and script fragments."""

from __future__ import annotations

import os
import re

from .errors import MissingParameterError

DEFAULT_SHELL = 'powershell'
SHELL_CANDIDATES = ('powershell', 'pwsh')

CREDENTIAL_VAR = '$vmmprovCred'

_ENV_NAME_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def powershell_cmd(script: str, *, shell: str = DEFAULT_SHELL) -> list[str]:
    return [shell or DEFAULT_SHELL, '-NoProfile', '-NonInteractive', '-Command', script]


def ps_quote(value: object) -> str:
    """Render ``value`` as a single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def require_password(password_env: str) -> str:
    name = (password_env or '').strip()
    if not _ENV_NAME_RE.match(name):
        raise MissingParameterError(
            f'remote.password_env must be an environment variable name (got: {password_env!r})'
        )
    if not os.environ.get(name):
        raise MissingParameterError(
            f'remote.username is set but ${name} is empty; export the password '
            'or clear remote.username to use the current identity.'
        )
    return name


def credential_script(username: str, password_env: str) -> str:
    """Build the statement that defines the alternate-credential variable.

    The password never appears on the command line; PowerShell reads it
    from the named environment variable.
    """
    env_name = require_password(password_env)
    return (
        f'{CREDENTIAL_VAR} = New-Object System.Management.Automation.PSCredential('
        f'{ps_quote(username)}, '
        f'(ConvertTo-SecureString $env:{env_name} -AsPlainText -Force))'
    )
