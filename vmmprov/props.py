"""Custom property value cleanup on existing virtual machines."""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from .errors import VMMProvError
from .results import CleanupResult
from .util import CmdError
from .vmm import VMMClient

log = logger


def clear_custom_properties(
    client: VMMClient,
    vm_name: str,
    names: Sequence[str] = (),
    *,
    dry_run: bool = False,
) -> list[str]:
    """Remove custom property values from a VM.

    Only the properties in ``names`` are cleared; an empty ``names`` clears
    every value set on the VM. Returns the property names removed.
    """
    wanted = {n.lower() for n in names}
    removed: list[str] = []
    for val in client.get_custom_property_values(vm_name):
        if not val.name:
            continue
        if wanted and val.name.lower() not in wanted:
            continue
        if dry_run:
            log.info('DRYRUN: remove custom property {} from {}', val.name, vm_name)
        else:
            client.remove_custom_property_value(vm_name, val.name)
            log.debug('Removed custom property {} from {}', val.name, vm_name)
        removed.append(val.name)
    if not removed:
        log.info('No matching custom property values on {}', vm_name)
    return removed


def clear_batch(
    client: VMMClient,
    vm_names: Sequence[str],
    names: Sequence[str] = (),
    *,
    dry_run: bool = False,
) -> CleanupResult:
    result = CleanupResult()
    for vm_name in vm_names:
        try:
            result.cleared[vm_name] = clear_custom_properties(
                client, vm_name, names, dry_run=dry_run
            )
        except (VMMProvError, CmdError) as ex:
            log.error('Custom property cleanup failed for {}: {}', vm_name, ex)
            result.failed[vm_name] = str(ex)
    return result
