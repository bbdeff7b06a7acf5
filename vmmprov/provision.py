"""Batch VM provisioning: setup checks, then per-name placement and creation."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Optional, Sequence

from loguru import logger

from .config import ProvisionConfig
from .disks import prepare_differencing_disk
from .errors import CreationFailedError, MissingParameterError, VMMProvError
from .models import HardwareProfile, VirtualHardDisk, VMTemplate
from .placement import place_vm
from .props import clear_custom_properties
from .remote import RemoteShell
from .results import BatchResult
from .util import CmdError
from .vmm import VMMClient

log = logger


def expand_vm_names(
    names: Sequence[str] = (),
    *,
    prefix: str = '',
    count: int = 0,
    start: int = 1,
    width: int = 2,
) -> list[str]:
    """Resolve the batch's VM names from an explicit list or a prefix+count.

    Exactly one form must be used. ``prefix='web', count=3`` yields
    ``web01, web02, web03``.
    """
    explicit = [n.strip() for n in names if n and n.strip()]
    prefix = (prefix or '').strip()
    if explicit and (prefix or count):
        raise MissingParameterError(
            'Pass either VM names or --prefix/--count, not both.'
        )
    if not explicit:
        if not prefix and not count:
            raise MissingParameterError(
                'No VM names given; pass names or --prefix with --count.'
            )
        if not prefix or count < 1:
            raise MissingParameterError(
                '--prefix and a positive --count must be given together.'
            )
        explicit = [f'{prefix}{i:0{width}d}' for i in range(start, start + count)]
    seen: set[str] = set()
    out: list[str] = []
    for n in explicit:
        key = n.lower()
        if key in seen:
            log.warning('Ignoring duplicate VM name: {}', n)
            continue
        seen.add(key)
        out.append(n)
    return out


def _is_drive_path(path: str) -> bool:
    p = PureWindowsPath(path)
    return len(p.drive) == 2 and p.drive.endswith(':') and bool(p.root)


def validate_request(cfg: ProvisionConfig) -> None:
    problems: list[str] = []
    if not cfg.placement.template:
        problems.append('placement.template is required')
    if not cfg.placement.host_group:
        problems.append('placement.host_group is required')
    if cfg.placement.disk_space_gb < 0:
        problems.append('placement.disk_space_gb must not be negative')
    if cfg.disk.enabled:
        if not cfg.disk.parent_disk:
            problems.append('disk.parent_disk is required when disk.enabled')
        if not cfg.disk.host_dir:
            problems.append('disk.host_dir is required when disk.enabled')
        elif not _is_drive_path(cfg.disk.host_dir):
            problems.append(
                'disk.host_dir must be an absolute drive-letter path on the host'
            )
        if not cfg.placement.vm_path:
            problems.append('placement.vm_path is required when disk.enabled')
    if problems:
        raise MissingParameterError('Invalid request: ' + '; '.join(problems))


@dataclass
class BatchContext:
    template: VMTemplate
    hardware_profile: Optional[HardwareProfile] = None
    parent_disk: Optional[VirtualHardDisk] = None


def prepare_batch(cfg: ProvisionConfig, client: VMMClient) -> BatchContext:
    """Run the checks that abort the whole batch when they fail."""
    validate_request(cfg)
    client.ensure_module()
    client.get_host_group(cfg.placement.host_group)
    ctx = BatchContext(template=client.get_template(cfg.placement.template))
    if cfg.placement.hardware_profile:
        ctx.hardware_profile = client.get_hardware_profile(
            cfg.placement.hardware_profile
        )
    if cfg.disk.enabled:
        ctx.parent_disk = client.get_virtual_disk(cfg.disk.parent_disk)
    log.debug(
        'Batch setup resolved template={} hardware_profile={} parent_disk={}',
        ctx.template.name,
        ctx.hardware_profile.name if ctx.hardware_profile else '(template)',
        ctx.parent_disk.name if ctx.parent_disk else '(none)',
    )
    return ctx


def provision_one(
    cfg: ProvisionConfig,
    name: str,
    ctx: BatchContext,
    client: VMMClient,
    remote: RemoteShell,
    *,
    rng: Optional[random.Random] = None,
    dry_run: bool = False,
) -> None:
    if client.vm_exists(name):
        raise CreationFailedError(f'A VM named {name!r} already exists.')
    host = place_vm(
        client,
        host_group=cfg.placement.host_group,
        template=ctx.template.name,
        disk_space_gb=cfg.placement.disk_space_gb,
        vm_name=name,
        rng=rng,
    )
    local_disk = None
    if ctx.parent_disk is not None:
        local_disk = prepare_differencing_disk(
            remote, cfg, host.address, ctx.parent_disk, name, dry_run=dry_run
        )
    if dry_run:
        log.info('DRYRUN: New-SCVirtualMachine {} on {}', name, host.name)
        return
    ok = client.new_vm(
        name,
        template=ctx.template.name,
        host=host,
        vm_path=cfg.placement.vm_path,
        hardware_profile=(
            ctx.hardware_profile.name if ctx.hardware_profile else ''
        ),
        local_disk=local_disk,
    )
    if not ok:
        raise CreationFailedError(
            f'VMM did not create {name!r} on host {host.name}.'
        )
    log.info('VM created: {} on {}', name, host.name)


def provision_batch(
    cfg: ProvisionConfig,
    names: Sequence[str],
    client: VMMClient,
    remote: RemoteShell,
    *,
    rng: Optional[random.Random] = None,
    dry_run: bool = False,
) -> BatchResult:
    """Create each named VM, isolating per-name failures.

    Setup problems (bad parameters, missing module, unresolved template,
    profile or parent disk) propagate and nothing is created. After setup,
    a failure for one name is recorded and the next name is attempted.
    A VM that was created stays in ``created`` even when the follow-up
    custom property cleanup fails; that failure goes to ``cleanup_failed``.
    """
    ctx = prepare_batch(cfg, client)
    result = BatchResult()
    for name in names:
        log.info('Provisioning {}', name)
        try:
            provision_one(
                cfg, name, ctx, client, remote, rng=rng, dry_run=dry_run
            )
        except (VMMProvError, CmdError, TimeoutError) as ex:
            log.error('Failed to provision {}: {}', name, ex)
            result.failed[name] = str(ex)
            continue
        result.created.append(name)
        if cfg.props.clear_after_create and not dry_run:
            try:
                clear_custom_properties(client, name, cfg.props.names)
            except (VMMProvError, CmdError) as ex:
                log.warning('VM {} created but property cleanup failed: {}', name, ex)
                result.cleanup_failed[name] = str(ex)
    log.info(
        'Batch finished: created={} failed={} cleanup_failed={}',
        len(result.created),
        len(result.failed),
        len(result.cleanup_failed),
    )
    return result
