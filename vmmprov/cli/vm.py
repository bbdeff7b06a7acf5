"""CLI commands for batch VM creation and custom property cleanup."""

from __future__ import annotations

import scriptconfig as scfg

from ..props import clear_batch
from ..provision import expand_vm_names, provision_batch
from ._common import (
    _BaseCommand,
    _apply_overrides,
    _clients,
    _confirm_block,
    _load_cfg,
    _parse_names_arg,
    log,
)


class VMCreateCLI(_BaseCommand):
    """Create VMs from a template on the best-rated hosts of a host group."""

    names = scfg.Value(
        '', position=1, help='Comma-separated VM names (or use --prefix/--count).'
    )
    prefix = scfg.Value('', help='Name prefix for generated VM names.')
    count = scfg.Value(0, type=int, help='Number of VMs to generate with --prefix.')
    start = scfg.Value(1, type=int, help='First index for generated names.')
    width = scfg.Value(2, type=int, help='Zero-pad width for generated indexes.')
    template = scfg.Value('', help='Template override.')
    host_group = scfg.Value('', help='Host group override.')
    hardware_profile = scfg.Value('', help='Hardware profile override.')
    vm_path = scfg.Value('', help='VM location on the host override.')
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _apply_overrides(
            _load_cfg(args.config),
            template=args.template,
            host_group=args.host_group,
            hardware_profile=args.hardware_profile,
            vm_path=args.vm_path,
        )
        names = expand_vm_names(
            _parse_names_arg(args.names),
            prefix=args.prefix,
            count=int(args.count or 0),
            start=int(args.start),
            width=int(args.width),
        )
        if not args.dry_run:
            _confirm_block(
                yes=bool(args.yes),
                purpose=(
                    f'Create {len(names)} VM(s) from template '
                    f"'{cfg.placement.template}' in '{cfg.placement.host_group}': "
                    + ', '.join(names)
                ),
            )
        client, remote = _clients(cfg)
        result = provision_batch(
            cfg, names, client, remote, dry_run=bool(args.dry_run)
        )
        for name in result.created:
            print(f'✅ {name}')
        for name, why in result.failed.items():
            print(f'❌ {name}: {why}')
        for name, why in result.cleanup_failed.items():
            print(f'➖ {name}: created, but property cleanup failed: {why}')
        return 0 if result.ok else 1


class VMClearPropsCLI(_BaseCommand):
    """Remove custom property values from existing VMs."""

    names = scfg.Value('', position=1, help='Comma-separated VM names.')
    props = scfg.Value(
        '',
        help='Comma-separated property names (default: props.names from config, else all).',
    )
    dry_run = scfg.Value(
        False, isflag=True, help='Print actions without running.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        vm_names = expand_vm_names(_parse_names_arg(args.names))
        prop_names = _parse_names_arg(args.props) or list(cfg.props.names)
        if not args.dry_run:
            _confirm_block(
                yes=bool(args.yes),
                purpose=(
                    'Remove custom property values '
                    f'({", ".join(prop_names) or "all"}) from: {", ".join(vm_names)}'
                ),
            )
        client, _ = _clients(cfg)
        result = clear_batch(
            client, vm_names, prop_names, dry_run=bool(args.dry_run)
        )
        for vm_name, removed in result.cleared.items():
            print(f'✅ {vm_name}: {", ".join(removed) or "(nothing to clear)"}')
        for vm_name, why in result.failed.items():
            print(f'❌ {vm_name}: {why}')
        log.debug('Cleanup result: {}', result.as_dict())
        return 0 if result.ok else 1


class VMModalCLI(scfg.ModalCLI):
    """VM creation and cleanup subcommands."""

    create = VMCreateCLI
    clear_props = VMClearPropsCLI
