"""Differencing-disk staging: parent VHD placement and child disk creation."""

from __future__ import annotations

from pathlib import PureWindowsPath

from loguru import logger

from .config import ProvisionConfig
from .errors import CreationFailedError, MissingParameterError, ResourceNotFoundError
from .models import VirtualHardDisk
from .remote import RemoteShell

log = logger


def admin_share_path(host: str, local_path: str | PureWindowsPath) -> PureWindowsPath:
    r"""Map a host-local path onto the host's administrative share.

    ``D:\VHD\base.vhdx`` on ``hv01`` becomes ``\\hv01\D$\VHD\base.vhdx``.
    """
    p = PureWindowsPath(local_path)
    if len(p.drive) != 2 or not p.drive.endswith(':') or not p.root:
        raise MissingParameterError(
            f'Expected an absolute drive-letter path on the host, got: {str(local_path)!r}'
        )
    share = p.drive[0].upper() + '$'
    return PureWindowsPath(f'\\\\{host}\\{share}\\', *p.parts[1:])


def parent_disk_path(cfg: ProvisionConfig, vhd: VirtualHardDisk) -> PureWindowsPath:
    fname = PureWindowsPath(vhd.location).name if vhd.location else vhd.name
    return PureWindowsPath(cfg.disk.host_dir, fname)


def child_disk_path(
    vm_path: str, vm_name: str, parent: PureWindowsPath
) -> PureWindowsPath:
    suffix = parent.suffix or '.vhdx'
    return PureWindowsPath(vm_path, vm_name, f'{vm_name}{suffix}')


def ensure_parent_disk(
    remote: RemoteShell,
    host: str,
    vhd: VirtualHardDisk,
    parent_path: PureWindowsPath,
    *,
    unlock_timeout_s: int = 600,
    unlock_poll_s: float = 5,
    dry_run: bool = False,
) -> PureWindowsPath:
    if remote.path_exists(host, str(parent_path)):
        log.info('Parent disk present on {}: {}', host, parent_path)
        # A concurrent stage of the same parent may still be writing it.
        remote.wait_until_unlocked(
            host,
            str(parent_path),
            timeout_s=unlock_timeout_s,
            poll_s=unlock_poll_s,
        )
        return parent_path
    if not vhd.location:
        raise ResourceNotFoundError(
            'virtual hard disk location', vhd.name, 'library object has no file path'
        )
    dest = admin_share_path(host, parent_path)
    if dry_run:
        log.info('DRYRUN: mkdir {} on {}; copy {} -> {}', parent_path.parent, host, vhd.location, dest)
        return parent_path
    remote.make_dir(host, str(parent_path.parent))
    remote.copy_file(host, vhd.location, str(dest))
    log.info('Staged parent disk on {}: {}', host, parent_path)
    return parent_path


def prepare_differencing_disk(
    remote: RemoteShell,
    cfg: ProvisionConfig,
    host: str,
    vhd: VirtualHardDisk,
    vm_name: str,
    *,
    dry_run: bool = False,
) -> PureWindowsPath:
    parent = ensure_parent_disk(
        remote,
        host,
        vhd,
        parent_disk_path(cfg, vhd),
        unlock_timeout_s=cfg.remote.unlock_timeout_s,
        unlock_poll_s=cfg.remote.unlock_poll_s,
        dry_run=dry_run,
    )
    child = child_disk_path(cfg.placement.vm_path, vm_name, parent)
    if dry_run:
        log.info('DRYRUN: New-VHD -Differencing {} (parent {}) on {}', child, parent, host)
        return child
    if remote.path_exists(host, str(child)):
        raise CreationFailedError(
            f'Differencing disk already exists on {host}: {child}; '
            'remove it or choose another VM name.'
        )
    remote.make_dir(host, str(child.parent))
    remote.new_differencing_disk(host, str(child), str(parent))
    return child
