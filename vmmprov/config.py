"""Config dataclasses and TOML load/save for provisioning defaults."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path

import ubelt as ub

from .util import ensure_dir, expand

CONFIG_FILENAME = '.vmmprov.toml'


@dataclass
class VMMConfig:
    server: str = 'localhost'
    port: int = 8100
    shell: str = 'powershell'
    module: str = 'VirtualMachineManager'


@dataclass
class PlacementConfig:
    host_group: str = 'All Hosts'
    template: str = ''
    hardware_profile: str = ''
    disk_space_gb: int = 40
    vm_path: str = ''


@dataclass
class DiskConfig:
    enabled: bool = False
    parent_disk: str = ''
    host_dir: str = ''


@dataclass
class RemoteConfig:
    username: str = ''
    password_env: str = 'VMMPROV_REMOTE_PASSWORD'
    unlock_timeout_s: int = 600
    unlock_poll_s: float = 5.0


@dataclass
class PropsConfig:
    names: list[str] = field(default_factory=list)
    clear_after_create: bool = False


@dataclass
class ProvisionConfig:
    vmm: VMMConfig = field(default_factory=VMMConfig)
    placement: PlacementConfig = field(default_factory=PlacementConfig)
    disk: DiskConfig = field(default_factory=DiskConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    props: PropsConfig = field(default_factory=PropsConfig)
    verbosity: int = 1

    def normalized(self) -> 'ProvisionConfig':
        for section in SECTIONS:
            obj = getattr(self, section)
            for k, v in vars(obj).items():
                if isinstance(v, str):
                    setattr(obj, k, v.strip())
        self.props.names = [
            str(n).strip() for n in self.props.names if str(n).strip()
        ]
        return self


SECTIONS = ('vmm', 'placement', 'disk', 'remote', 'props')


def default_config_path() -> Path:
    return Path(ub.Path.appdir('vmmprov', type='config')) / 'config.toml'


def resolve_config_path(p: str | None) -> Path:
    """Pick the config file: explicit path, then ``./.vmmprov.toml``, then per-user."""
    if p:
        return Path(expand(p)).resolve()
    local = Path(CONFIG_FILENAME).resolve()
    if local.exists():
        return local
    user = default_config_path()
    if user.exists():
        return user
    return local


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def dump_toml(cfg: ProvisionConfig) -> str:
    d = asdict(cfg)
    lines: list[str] = []
    # Top-level keys must come before the first table header.
    if d.get('verbosity', 1) != 1:
        lines.append(f'verbosity = {int(d["verbosity"])}')
        lines.append('')
    for section, body in d.items():
        if not isinstance(body, dict):
            continue
        lines.append(f'[{section}]')
        for k, v in body.items():
            if isinstance(v, bool):
                lines.append(f'{k} = {"true" if v else "false"}')
            elif isinstance(v, (int, float)):
                lines.append(f'{k} = {v}')
            elif isinstance(v, list):
                parts = [f'"{_toml_escape(str(item))}"' for item in v]
                lines.append(f'{k} = [{", ".join(parts)}]')
            else:
                lines.append(f'{k} = "{_toml_escape(str(v))}"')
        lines.append('')
    return '\n'.join(lines).rstrip() + '\n'


def loads(text: str) -> ProvisionConfig:
    raw = tomllib.loads(text)
    cfg = ProvisionConfig()
    for section in SECTIONS:
        if section in raw and isinstance(raw[section], dict):
            obj = getattr(cfg, section)
            for k, v in raw[section].items():
                if hasattr(obj, k):
                    setattr(obj, k, v)
    if 'verbosity' in raw:
        cfg.verbosity = int(raw['verbosity'])
    return cfg


def load(path: Path) -> ProvisionConfig:
    return loads(path.read_text(encoding='utf-8'))


def save(path: Path, cfg: ProvisionConfig) -> None:
    ensure_dir(path.parent)
    path.write_text(dump_toml(cfg), encoding='utf-8')
