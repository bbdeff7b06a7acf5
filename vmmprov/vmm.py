"""Management-service client that drives VMM cmdlets through PowerShell.

Each call runs one short script: import the VMM module, connect to the
server, run the query, and emit compact JSON. Results are converted to
the typed records in :mod:`vmmprov.models` before they leave this module.
"""

from __future__ import annotations

import json
from pathlib import PureWindowsPath
from typing import Any, Optional, Sequence

from loguru import logger

from .config import ProvisionConfig
from .errors import MissingModuleError, ResourceNotFoundError, UnexpectedOutputError
from .models import (
    CustomPropertyValue,
    HardwareProfile,
    HostCandidate,
    VirtualHardDisk,
    VMHost,
    VMTemplate,
)
from .runtime import DEFAULT_SHELL, powershell_cmd, ps_quote
from .util import run_cmd

log = logger


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as ex:
        raise UnexpectedOutputError(
            f'VMM returned non-JSON output ({ex}): {text[:200]}'
        ) from ex


def parse_json_rows(text: str) -> list[dict[str, Any]]:
    """Normalize ConvertTo-Json output to a list of objects."""
    text = (text or '').strip()
    if not text:
        return []
    data = _decode(text)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    raise UnexpectedOutputError(f'Unexpected JSON payload from VMM: {text[:200]}')


def parse_json_bool(text: str) -> bool:
    text = (text or '').strip()
    if not text:
        return False
    data = _decode(text)
    if isinstance(data, list):
        data = data[-1] if data else False
    return bool(data)


class VMMClient:
    """Thin typed wrapper over the VMM PowerShell module."""

    def __init__(
        self,
        server: str = 'localhost',
        *,
        port: int = 8100,
        shell: str = DEFAULT_SHELL,
        module: str = 'VirtualMachineManager',
    ) -> None:
        self.server = server
        self.port = int(port)
        self.shell = shell or DEFAULT_SHELL
        self.module = module

    @classmethod
    def from_config(cls, cfg: ProvisionConfig) -> 'VMMClient':
        return cls(
            cfg.vmm.server,
            port=cfg.vmm.port,
            shell=cfg.vmm.shell,
            module=cfg.vmm.module,
        )

    def _prelude(self) -> str:
        return (
            f'Import-Module {ps_quote(self.module)} -ErrorAction Stop\n'
            f'$vmm = Get-SCVMMServer -ComputerName {ps_quote(self.server)} '
            f'-TCPPort {self.port}'
        )

    def _script(self, *lines: str) -> str:
        return '\n'.join([self._prelude(), *lines])

    def _run(self, *lines: str) -> str:
        res = run_cmd(powershell_cmd(self._script(*lines), shell=self.shell))
        return res.stdout

    def _query(
        self, pipeline: str, *, setup: Sequence[str] = ()
    ) -> list[dict[str, Any]]:
        out = self._run(
            *setup,
            f'ConvertTo-Json -InputObject @({pipeline}) -Depth 3 -Compress',
        )
        return parse_json_rows(out)

    def _query_one(
        self, kind: str, name: str, pipeline: str, *, setup: Sequence[str] = ()
    ) -> dict[str, Any]:
        rows = self._query(pipeline, setup=setup)
        if not rows:
            raise ResourceNotFoundError(kind, name)
        return rows[0]

    def ensure_module(self) -> None:
        script = (
            f'ConvertTo-Json -InputObject @(Get-Module -ListAvailable -Name '
            f'{ps_quote(self.module)} | Select-Object -First 1 -Property Name) '
            '-Compress'
        )
        res = run_cmd(powershell_cmd(script, shell=self.shell))
        if not parse_json_rows(res.stdout):
            raise MissingModuleError(self.module)
        log.debug('PowerShell module available: {}', self.module)

    def get_hardware_profile(self, name: str) -> HardwareProfile:
        row = self._query_one(
            'hardware profile',
            name,
            'Get-SCHardwareProfile -VMMServer $vmm | '
            f'Where-Object {{ $_.Name -eq {ps_quote(name)} }} | '
            "Select-Object -First 1 -Property Name, @{n='ID';e={[string]$_.ID}}",
        )
        return HardwareProfile.from_json(row)

    def get_template(self, name: str) -> VMTemplate:
        row = self._query_one(
            'VM template',
            name,
            f'Get-SCVMTemplate -VMMServer $vmm -Name {ps_quote(name)} | '
            "Select-Object -First 1 -Property Name, @{n='ID';e={[string]$_.ID}}",
        )
        return VMTemplate.from_json(row)

    def get_host_group(self, name: str) -> str:
        row = self._query_one(
            'host group',
            name,
            f'Get-SCVMHostGroup -VMMServer $vmm -Name {ps_quote(name)} | '
            'Select-Object -First 1 -Property Name',
        )
        return str(row.get('Name') or name)

    def get_virtual_disk(self, name: str) -> VirtualHardDisk:
        row = self._query_one(
            'virtual hard disk',
            name,
            'Get-SCVirtualHardDisk -VMMServer $vmm | '
            f'Where-Object {{ $_.Name -eq {ps_quote(name)} }} | '
            'Select-Object -First 1 -Property Name, Location, Size',
        )
        return VirtualHardDisk.from_json(row)

    def get_host(self, name: str) -> VMHost:
        row = self._query_one(
            'VM host',
            name,
            f'Get-SCVMHost -VMMServer $vmm -ComputerName {ps_quote(name)} | '
            'Select-Object -First 1 -Property Name, FQDN, '
            "@{n='HostGroup';e={$_.VMHostGroup.Name}}",
        )
        return VMHost.from_json(row)

    def get_host_ratings(
        self,
        host_group: str,
        template: str,
        disk_space_gb: int,
        vm_name: str,
    ) -> list[HostCandidate]:
        rows = self._query(
            'Get-SCVMHostRating -VMHostGroup $hg -VMTemplate $tpl '
            f'-DiskSpaceGB {int(disk_space_gb)} -VMName {ps_quote(vm_name)} | '
            "Select-Object @{n='Name';e={$_.VMHost.Name}}, Rating",
            setup=[
                f'$hg = Get-SCVMHostGroup -VMMServer $vmm -Name {ps_quote(host_group)}',
                f'$tpl = Get-SCVMTemplate -VMMServer $vmm -Name {ps_quote(template)}',
            ],
        )
        return [HostCandidate.from_json(r) for r in rows]

    def vm_exists(self, name: str) -> bool:
        rows = self._query(
            f'Get-SCVirtualMachine -VMMServer $vmm -Name {ps_quote(name)} | '
            'Select-Object -First 1 -Property Name'
        )
        return bool(rows)

    def new_vm(
        self,
        name: str,
        *,
        template: str,
        host: VMHost,
        vm_path: str = '',
        hardware_profile: str = '',
        local_disk: Optional[PureWindowsPath] = None,
    ) -> bool:
        """Create ``name`` on ``host`` and report whether VMM returned a VM.

        With ``local_disk`` the VM boots from an existing disk already on
        the host (a prepared differencing disk) instead of the template's
        own disk deployment.
        """
        lines = [
            f'$tpl = Get-SCVMTemplate -VMMServer $vmm -Name {ps_quote(template)}',
            f'$vmHost = Get-SCVMHost -VMMServer $vmm -ComputerName {ps_quote(host.name)}',
        ]
        hw_arg = ''
        if hardware_profile:
            lines.append(
                '$hw = Get-SCHardwareProfile -VMMServer $vmm | '
                f'Where-Object {{ $_.Name -eq {ps_quote(hardware_profile)} }}'
            )
            hw_arg = ' -HardwareProfile $hw'
        path_arg = f' -Path {ps_quote(vm_path)}' if vm_path else ''
        if local_disk is not None:
            lines += [
                '$jg = [guid]::NewGuid().ToString()',
                'New-SCVirtualDiskDrive -VMMServer $vmm -IDE -Bus 0 -LUN 0 '
                '-JobGroup $jg -UseLocalVirtualHardDisk '
                f'-FileName {ps_quote(local_disk.name)} '
                f'-Path {ps_quote(str(local_disk.parent))} | Out-Null',
                f'$vm = New-SCVirtualMachine -Name {ps_quote(name)} -VMTemplate $tpl '
                f'-VMHost $vmHost{path_arg}{hw_arg} -JobGroup $jg '
                '-ErrorAction SilentlyContinue',
            ]
        else:
            loc_arg = f' -VMLocation {ps_quote(vm_path)}' if vm_path else ''
            lines += [
                f'$cfg = New-SCVMConfiguration -VMTemplate $tpl -Name {ps_quote(name)}',
                f'Set-SCVMConfiguration -VMConfiguration $cfg -VMHost $vmHost{loc_arg} | Out-Null',
                'Update-SCVMConfiguration -VMConfiguration $cfg | Out-Null',
                f'$vm = New-SCVirtualMachine -Name {ps_quote(name)} '
                f'-VMConfiguration $cfg{hw_arg} -ErrorAction SilentlyContinue',
            ]
        lines.append('ConvertTo-Json -InputObject ([bool]$vm) -Compress')
        return parse_json_bool(self._run(*lines))

    def _vm_setup(self, vm_name: str) -> list[str]:
        return [
            f'$vm = Get-SCVirtualMachine -VMMServer $vmm -Name {ps_quote(vm_name)}',
        ]

    def get_custom_property_values(
        self, vm_name: str
    ) -> list[CustomPropertyValue]:
        if not self.vm_exists(vm_name):
            raise ResourceNotFoundError('virtual machine', vm_name)
        rows = self._query(
            'Get-SCCustomPropertyValue -InputObject $vm | '
            "Select-Object @{n='Name';e={$_.CustomProperty.Name}}, Value",
            setup=self._vm_setup(vm_name),
        )
        return [CustomPropertyValue.from_json(r) for r in rows]

    def remove_custom_property_value(
        self, vm_name: str, property_name: str
    ) -> None:
        self._run(
            *self._vm_setup(vm_name),
            f'$cp = Get-SCCustomProperty -VMMServer $vmm -Name {ps_quote(property_name)}',
            '$val = Get-SCCustomPropertyValue -InputObject $vm -CustomProperty $cp',
            'if ($val) { Remove-SCCustomPropertyValue -CustomPropertyValue $val | Out-Null }',
        )
