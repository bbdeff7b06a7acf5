"""Tests for config load/save and resolution."""

from __future__ import annotations

from pathlib import Path

from vmmprov.config import (
    ProvisionConfig,
    dump_toml,
    load,
    loads,
    resolve_config_path,
    save,
)


def test_dump_load_roundtrip(tmp_path: Path) -> None:
    cfg = ProvisionConfig()
    cfg.vmm.server = 'vmm01.corp.local'
    cfg.placement.template = 'WS2022 "Std"'
    cfg.disk.host_dir = 'D:\\VHD\\Base'
    cfg.props.names = ['Owner', 'CostCenter']
    cfg.verbosity = 3
    fpath = tmp_path / '.vmmprov.toml'
    save(fpath, cfg)

    cfg2 = load(fpath)
    assert cfg2.vmm.server == cfg.vmm.server
    assert cfg2.placement.template == cfg.placement.template
    assert cfg2.disk.host_dir == 'D:\\VHD\\Base'
    assert cfg2.props.names == ['Owner', 'CostCenter']
    assert cfg2.verbosity == 3


def test_dump_toml_verbosity_default_omitted() -> None:
    text = dump_toml(ProvisionConfig())
    assert 'verbosity =' not in text
    assert '[placement]' in text


def test_dump_toml_writes_verbosity_at_top_level() -> None:
    cfg = ProvisionConfig()
    cfg.verbosity = 2
    cfg.remote.unlock_poll_s = 0.5
    text = dump_toml(cfg)
    assert text.index('verbosity = 2') < text.index('[vmm]')
    cfg2 = loads(text)
    assert cfg2.verbosity == 2
    assert cfg2.props.names == []
    assert cfg2.remote.unlock_poll_s == 0.5


def test_loads_ignores_unknown_keys() -> None:
    cfg = loads('[vmm]\nserver = "a"\nbogus = 1\n[extra]\nx = 2\n')
    assert cfg.vmm.server == 'a'
    assert not hasattr(cfg.vmm, 'bogus')


def test_normalized_strips_values() -> None:
    cfg = ProvisionConfig()
    cfg.placement.template = '  ws2022 '
    cfg.props.names = [' Owner ', '', '  ']
    out = cfg.normalized()
    assert out.placement.template == 'ws2022'
    assert out.props.names == ['Owner']


def test_resolve_config_path_prefers_explicit_then_local(
    monkeypatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    user_cfg = tmp_path / 'user' / 'config.toml'
    monkeypatch.setattr(
        'vmmprov.config.default_config_path', lambda: user_cfg
    )
    explicit = tmp_path / 'x.toml'
    assert resolve_config_path(str(explicit)) == explicit.resolve()
    # nothing exists yet: local path is the default target
    assert resolve_config_path(None) == (tmp_path / '.vmmprov.toml').resolve()
    save(user_cfg, ProvisionConfig())
    assert resolve_config_path(None) == user_cfg
    save(tmp_path / '.vmmprov.toml', ProvisionConfig())
    assert resolve_config_path(None) == (tmp_path / '.vmmprov.toml').resolve()
