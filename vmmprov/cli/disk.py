"""CLI commands for staging the parent VHD on a host."""

from __future__ import annotations

import scriptconfig as scfg

from ..disks import ensure_parent_disk, parent_disk_path
from ..errors import MissingParameterError
from ._common import _BaseCommand, _clients, _load_cfg


class DiskStageCLI(_BaseCommand):
    """Copy the configured parent VHD to a host if it is not there yet."""

    host = scfg.Value('', position=1, help='Target host name.')
    parent_disk = scfg.Value('', help='Library VHD name override.')
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        if args.parent_disk:
            cfg.disk.parent_disk = str(args.parent_disk).strip()
        host_name = str(args.host or '').strip()
        if not host_name:
            raise MissingParameterError('A target host is required: vmmprov disk stage HOST')
        if not cfg.disk.parent_disk or not cfg.disk.host_dir:
            raise MissingParameterError(
                'disk.parent_disk and disk.host_dir must be set to stage a parent disk.'
            )
        client, remote = _clients(cfg)
        client.ensure_module()
        vhd = client.get_virtual_disk(cfg.disk.parent_disk)
        host = client.get_host(host_name)
        path = ensure_parent_disk(
            remote,
            host.address,
            vhd,
            parent_disk_path(cfg, vhd),
            unlock_timeout_s=cfg.remote.unlock_timeout_s,
            unlock_poll_s=cfg.remote.unlock_poll_s,
            dry_run=bool(args.dry_run),
        )
        print(str(path))
        return 0


class DiskModalCLI(scfg.ModalCLI):
    """Differencing-disk subcommands."""

    stage = DiskStageCLI
