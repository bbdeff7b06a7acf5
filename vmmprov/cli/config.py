"""CLI commands for creating and showing the provisioning config."""

from __future__ import annotations

import sys

import scriptconfig as scfg

from ..config import ProvisionConfig, dump_toml, save
from ._common import _BaseCommand, _cfg_path, _load_cfg_with_path


class InitCLI(_BaseCommand):
    """Write a config file with default settings."""

    server = scfg.Value('', help='VMM server name to record.')
    template = scfg.Value('', help='Default VM template name.')
    host_group = scfg.Value('', help='Default host group.')
    force = scfg.Value(
        False, isflag=True, help='Overwrite an existing config file.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = _cfg_path(args.config)
        if path.exists() and not args.force:
            print(f'Config already exists: {path}', file=sys.stderr)
            print('Use --force to overwrite.', file=sys.stderr)
            return 2
        cfg = ProvisionConfig()
        if args.server:
            cfg.vmm.server = str(args.server).strip()
        if args.template:
            cfg.placement.template = str(args.template).strip()
        if args.host_group:
            cfg.placement.host_group = str(args.host_group).strip()
        save(path, cfg)
        print(f'Wrote config: {path}')
        return 0


class ConfigShowCLI(_BaseCommand):
    """Show the resolved config content."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg, path = _load_cfg_with_path(args.config)
        print(f'# Config: {path}')
        print(dump_toml(cfg), end='')
        return 0


class ConfigModalCLI(scfg.ModalCLI):
    """Config file subcommands."""

    init = InitCLI
    show = ConfigShowCLI
