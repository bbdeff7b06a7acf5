from __future__ import annotations

import sys
from pathlib import Path

import scriptconfig as scfg
from loguru import logger

from ..config import ProvisionConfig, load, resolve_config_path
from ..remote import RemoteShell
from ..vmm import VMMClient

log = logger


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None,
        help='Path to config TOML (default: ./.vmmprov.toml, then the per-user config).',
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )
    yes = scfg.Value(
        False,
        isflag=True,
        help='Skip the confirmation prompt before changing VMM state.',
    )


def _cfg_path(p: str | None) -> Path:
    return resolve_config_path(p)


def _load_cfg_with_path(config_path: str | None) -> tuple[ProvisionConfig, Path]:
    path = _cfg_path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f'Config not found: {path}. Run: vmmprov config init --config {path}'
        )
    return load(path).normalized(), path


def _load_cfg(config_path: str | None) -> ProvisionConfig:
    cfg, _ = _load_cfg_with_path(config_path)
    return cfg


def _apply_overrides(cfg: ProvisionConfig, **overrides: object) -> ProvisionConfig:
    """Copy non-empty ``placement`` overrides from CLI options onto ``cfg``."""
    for key, val in overrides.items():
        if val is None or val == '':
            continue
        setattr(cfg.placement, key, type(getattr(cfg.placement, key))(val))
    return cfg


def _parse_names_arg(raw: str | list | None) -> list[str]:
    if not raw:
        return []
    items = raw if isinstance(raw, list) else str(raw).split(',')
    return [str(x).strip() for x in items if str(x).strip()]


def _clients(cfg: ProvisionConfig) -> tuple[VMMClient, RemoteShell]:
    return VMMClient.from_config(cfg), RemoteShell.from_config(cfg)


def _confirm_block(*, yes: bool, purpose: str) -> None:
    if yes:
        return
    if not sys.stdin.isatty():
        raise RuntimeError(
            'Changing VMM state requires confirmation, but stdin is not interactive. '
            'Re-run with --yes.'
        )
    print('About to change state through the VMM service:')
    print(f'  {purpose}')
    ans = input('Continue? [y/N]: ').strip().lower()
    if ans not in {'y', 'yes'}:
        raise RuntimeError('Aborted by user.')
