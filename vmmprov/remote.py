"""Remote command dispatch against virtualization hosts via PowerShell remoting."""

from __future__ import annotations

import re
import time
from pathlib import PureWindowsPath

from loguru import logger

from .config import ProvisionConfig
from .errors import AccessDeniedError
from .runtime import (
    CREDENTIAL_VAR,
    DEFAULT_SHELL,
    credential_script,
    powershell_cmd,
    ps_quote,
)
from .util import CmdError, CmdResult, run_cmd

log = logger

_ACCESS_DENIED_RE = re.compile(
    r'access (to the path .* )?is denied'
    r'|unauthorizedaccess'
    r'|permissiondenied'
    r'|0x80070005',
    re.IGNORECASE,
)

COPY_DRIVE = 'VMMProvCopy'


def _is_access_denied_error(ex: Exception) -> bool:
    text = str(ex)
    if isinstance(ex, CmdError):
        text = '\n'.join([text, ex.result.stdout, ex.result.stderr])
    return _ACCESS_DENIED_RE.search(text) is not None


class RemoteShell:
    """Run file operations on a named host, optionally as another user."""

    def __init__(
        self,
        *,
        shell: str = DEFAULT_SHELL,
        username: str = '',
        password_env: str = 'VMMPROV_REMOTE_PASSWORD',
    ) -> None:
        self.shell = shell or DEFAULT_SHELL
        self.username = username
        self.password_env = password_env

    @classmethod
    def from_config(cls, cfg: ProvisionConfig) -> 'RemoteShell':
        return cls(
            shell=cfg.vmm.shell,
            username=cfg.remote.username,
            password_env=cfg.remote.password_env,
        )

    def _cred_lines(self) -> tuple[list[str], str]:
        if not self.username:
            return [], ''
        return (
            [credential_script(self.username, self.password_env)],
            f' -Credential {CREDENTIAL_VAR}',
        )

    def invoke(self, host: str, block: str, *, check: bool = True) -> CmdResult:
        lines, cred_arg = self._cred_lines()
        lines.append(
            f'Invoke-Command -ComputerName {ps_quote(host)}{cred_arg} '
            f'-ErrorAction Stop -ScriptBlock {{ {block} }}'
        )
        return run_cmd(
            powershell_cmd('\n'.join(lines), shell=self.shell), check=check
        )

    def path_exists(self, host: str, path: str) -> bool:
        res = self.invoke(
            host,
            f'if (Test-Path -LiteralPath {ps_quote(path)}) {{ "true" }} else {{ "false" }}',
        )
        return res.stdout.strip().lower() == 'true'

    def make_dir(self, host: str, path: str) -> None:
        log.debug('Ensuring directory on {}: {}', host, path)
        self.invoke(
            host,
            f'New-Item -ItemType Directory -Force -Path {ps_quote(path)} | Out-Null',
        )

    def file_locked(self, host: str, path: str) -> bool:
        """True when ``path`` cannot be opened exclusively on ``host``."""
        res = self.invoke(
            host,
            'try { '
            f"$fs = [System.IO.File]::Open({ps_quote(path)}, 'Open', 'ReadWrite', 'None'); "
            '$fs.Close(); "false" } catch { "true" }',
        )
        return res.stdout.strip().lower() == 'true'

    def wait_until_unlocked(
        self,
        host: str,
        path: str,
        *,
        timeout_s: int = 600,
        poll_s: float = 5,
    ) -> None:
        deadline = time.time() + timeout_s
        announced = False
        while time.time() < deadline:
            if not self.file_locked(host, path):
                if announced:
                    log.info('File released on {}: {}', host, path)
                return
            if not announced:
                log.info(
                    'File is locked on {} (copy in progress?); waiting: {}',
                    host,
                    path,
                )
                announced = True
            time.sleep(poll_s)
        raise TimeoutError(
            f'Timed out after {timeout_s}s waiting for {path} on {host} to be released'
        )

    def copy_file(self, host: str, source: str, destination: str) -> None:
        """Copy ``source`` to a UNC ``destination`` on ``host``'s admin share."""
        root = PureWindowsPath(destination).anchor.rstrip('\\')
        lines, cred_arg = self._cred_lines()
        lines += [
            f'New-PSDrive -Name {COPY_DRIVE} -PSProvider FileSystem '
            f'-Root {ps_quote(root)}{cred_arg} -ErrorAction Stop | Out-Null',
            'try {',
            f'  Copy-Item -LiteralPath {ps_quote(source)} '
            f'-Destination {ps_quote(destination)} -Force -ErrorAction Stop',
            '} finally {',
            f'  Remove-PSDrive -Name {COPY_DRIVE} -ErrorAction SilentlyContinue',
            '}',
        ]
        log.info('Copying {} -> {}', source, destination)
        try:
            run_cmd(powershell_cmd('\n'.join(lines), shell=self.shell))
        except CmdError as ex:
            if _is_access_denied_error(ex):
                who = self.username or 'the current user'
                raise AccessDeniedError(
                    f'Access denied copying {source} to {destination} as {who}. '
                    'Check share permissions or set remote.username.'
                ) from ex
            raise

    def new_differencing_disk(
        self, host: str, path: str, parent_path: str
    ) -> None:
        log.info('Creating differencing disk on {}: {} (parent {})', host, path, parent_path)
        self.invoke(
            host,
            f'New-VHD -Path {ps_quote(path)} -ParentPath {ps_quote(parent_path)} '
            '-Differencing | Out-Null',
        )
