from __future__ import annotations

import sys

import scriptconfig as scfg

from ..errors import MissingParameterError, NoEligibleHostError, VMMProvError
from ..host import check_commands, find_shell
from ..placement import rank_candidates, select_host, tie_band_size
from ..vmm import VMMClient
from ._common import _BaseCommand, _apply_overrides, _load_cfg


class DoctorCLI(_BaseCommand):
    """Check for PowerShell and the VMM module on this machine."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        missing = check_commands(cfg.vmm.shell)
        if missing:
            print('❌ Missing required commands:', ', '.join(missing))
            return 2
        shell = find_shell(cfg.vmm.shell)
        if shell != cfg.vmm.shell:
            print(f'➖ Configured shell {cfg.vmm.shell!r} not found; using {shell!r}.')
            cfg.vmm.shell = shell
        try:
            VMMClient.from_config(cfg).ensure_module()
        except VMMProvError as ex:
            print(f'❌ {ex}')
            return 2
        print(f'✅ PowerShell ({shell}) and module {cfg.vmm.module} are available.')
        return 0


class RateCLI(_BaseCommand):
    """Show host ratings for a VM and which host would be chosen."""

    vm = scfg.Value('', position=1, help='Candidate VM name to rate for.')
    template = scfg.Value('', help='Template override.')
    host_group = scfg.Value('', help='Host group override.')
    disk_space_gb = scfg.Value(None, type=int, help='Required disk space override.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _apply_overrides(
            _load_cfg(args.config),
            template=args.template,
            host_group=args.host_group,
            disk_space_gb=args.disk_space_gb,
        )
        vm_name = str(args.vm or '').strip()
        if not vm_name:
            raise MissingParameterError('A VM name is required: vmmprov host rate NAME')
        client = VMMClient.from_config(cfg)
        ratings = rank_candidates(
            client.get_host_ratings(
                cfg.placement.host_group,
                cfg.placement.template,
                cfg.placement.disk_space_gb,
                vm_name,
            )
        )
        k = tie_band_size(ratings)
        print(f'Host ratings for {vm_name} in {cfg.placement.host_group!r}')
        if not ratings:
            print('  (none)')
        for idx, cand in enumerate(ratings):
            mark = '*' if idx < k and cand.eligible else ' '
            print(f' {mark} {cand.name:<30} {cand.rating:g}')
        try:
            chosen = select_host(ratings)
        except NoEligibleHostError as ex:
            print(f'❌ {ex}', file=sys.stderr)
            return 1
        if k > 1:
            print(f'Tie between {k} hosts; this draw picked: {chosen}')
        else:
            print(f'Selected: {chosen}')
        return 0


class HostModalCLI(scfg.ModalCLI):
    """Host checks and placement inspection."""

    doctor = DoctorCLI
    rate = RateCLI
