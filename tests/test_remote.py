"""Tests for remote file operations on virtualization hosts."""

from __future__ import annotations

import pytest

from vmmprov.errors import AccessDeniedError
from vmmprov.remote import RemoteShell, _is_access_denied_error
from vmmprov.util import CmdError, CmdResult


def _capture(monkeypatch, stdout='', exc=None):
    calls = []

    def fake_run_cmd(cmd, **kwargs):
        calls.append(cmd)
        if exc is not None:
            raise exc
        return CmdResult(0, stdout, '')

    monkeypatch.setattr('vmmprov.remote.run_cmd', fake_run_cmd)
    return calls


def test_path_exists_targets_host(monkeypatch) -> None:
    calls = _capture(monkeypatch, stdout='true\r\n')
    assert RemoteShell().path_exists('hv01', 'D:\\VHD\\base.vhdx') is True
    script = calls[0][-1]
    assert "Invoke-Command -ComputerName 'hv01'" in script
    assert "Test-Path -LiteralPath 'D:\\VHD\\base.vhdx'" in script
    assert '-Credential' not in script

    _capture(monkeypatch, stdout='false\n')
    assert RemoteShell().path_exists('hv01', 'D:\\x') is False


def test_alternate_credentials(monkeypatch) -> None:
    monkeypatch.setenv('VMMPROV_REMOTE_PASSWORD', 'pw')
    calls = _capture(monkeypatch)
    RemoteShell(username='CORP\\svc').make_dir('hv01', 'D:\\VHD')
    script = calls[0][-1]
    assert script.startswith('$vmmprovCred = New-Object')
    assert '-Credential $vmmprovCred' in script
    assert "New-Item -ItemType Directory -Force -Path 'D:\\VHD'" in script


def test_copy_file_maps_access_denied(monkeypatch) -> None:
    err = CmdError(
        ['powershell'],
        CmdResult(
            1,
            '',
            "Copy-Item : Access to the path '\\\\hv01\\D$\\VHD\\base.vhdx' is denied.",
        ),
    )
    _capture(monkeypatch, exc=err)
    with pytest.raises(AccessDeniedError, match='Access denied copying'):
        RemoteShell().copy_file(
            'hv01', '\\\\lib\\share\\base.vhdx', '\\\\hv01\\D$\\VHD\\base.vhdx'
        )


def test_copy_file_other_failures_propagate(monkeypatch) -> None:
    err = CmdError(['powershell'], CmdResult(1, '', 'The network path was not found.'))
    _capture(monkeypatch, exc=err)
    with pytest.raises(CmdError, match='network path'):
        RemoteShell().copy_file(
            'hv01', '\\\\lib\\share\\base.vhdx', '\\\\hv01\\D$\\VHD\\base.vhdx'
        )


def test_copy_file_mounts_admin_share_root(monkeypatch) -> None:
    calls = _capture(monkeypatch)
    RemoteShell().copy_file(
        'hv01', '\\\\lib\\share\\base.vhdx', '\\\\hv01\\D$\\VHD\\base.vhdx'
    )
    script = calls[0][-1]
    assert "-Root '\\\\hv01\\D$'" in script
    assert "Copy-Item -LiteralPath '\\\\lib\\share\\base.vhdx'" in script
    assert 'Remove-PSDrive' in script


def test_access_denied_patterns() -> None:
    assert _is_access_denied_error(RuntimeError('Access is denied.'))
    assert _is_access_denied_error(RuntimeError('UnauthorizedAccessException'))
    assert _is_access_denied_error(RuntimeError('HRESULT 0x80070005'))
    assert not _is_access_denied_error(RuntimeError('disk full'))


def test_wait_until_unlocked_polls(monkeypatch) -> None:
    states = iter([True, True, False])
    monkeypatch.setattr(
        RemoteShell, 'file_locked', lambda self, host, path: next(states)
    )
    sleeps = []
    monkeypatch.setattr('vmmprov.remote.time.sleep', sleeps.append)
    RemoteShell().wait_until_unlocked('hv01', 'D:\\x', timeout_s=60, poll_s=3)
    assert sleeps == [3, 3]


def test_wait_until_unlocked_times_out(monkeypatch) -> None:
    monkeypatch.setattr(RemoteShell, 'file_locked', lambda self, h, p: True)
    clock = iter([0.0, 1.0, 2.0, 100.0])
    monkeypatch.setattr('vmmprov.remote.time.time', lambda: next(clock))
    monkeypatch.setattr('vmmprov.remote.time.sleep', lambda s: None)
    with pytest.raises(TimeoutError, match='waiting for'):
        RemoteShell().wait_until_unlocked('hv01', 'D:\\x', timeout_s=10)


def test_file_locked_checks_exclusive_open(monkeypatch) -> None:
    calls = _capture(monkeypatch, stdout='true')
    assert RemoteShell().file_locked('hv01', 'D:\\x.vhdx') is True
    assert "[System.IO.File]::Open('D:\\x.vhdx', 'Open', 'ReadWrite', 'None')" in calls[0][-1]
