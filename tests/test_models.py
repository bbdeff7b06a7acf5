"""Tests for typed records built from VMM JSON rows."""

from __future__ import annotations

from vmmprov.models import (
    CustomPropertyValue,
    HostCandidate,
    VirtualHardDisk,
    VMHost,
)


def test_host_candidate_from_json() -> None:
    c = HostCandidate.from_json({'Name': 'hv01', 'Rating': 4.5})
    assert c == HostCandidate('hv01', 4.5)
    assert c.eligible is True


def test_host_candidate_missing_or_bad_rating_is_ineligible() -> None:
    assert HostCandidate.from_json({'Name': 'hv02'}).rating == 0.0
    bad = HostCandidate.from_json({'Name': 'hv03', 'Rating': 'n/a'})
    assert bad.rating == 0.0
    assert bad.eligible is False


def test_host_candidate_non_finite_rating_is_ineligible() -> None:
    for raw in ('NaN', 'Infinity', float('nan'), float('-inf')):
        cand = HostCandidate.from_json({'Name': 'hv04', 'Rating': raw})
        assert cand.rating == 0.0
        assert cand.eligible is False


def test_vm_host_address_prefers_fqdn() -> None:
    h = VMHost.from_json(
        {'Name': 'hv01', 'FQDN': 'hv01.corp.local', 'HostGroup': 'Prod'}
    )
    assert h.address == 'hv01.corp.local'
    assert h.host_group == 'Prod'
    assert VMHost('hv02').address == 'hv02'


def test_virtual_hard_disk_from_json() -> None:
    d = VirtualHardDisk.from_json(
        {
            'Name': 'base.vhdx',
            'Location': r'\\lib01\MSSCVMMLibrary\VHDs\base.vhdx',
            'Size': '1073741824',
        }
    )
    assert d.size_bytes == 1073741824
    assert d.location.endswith('base.vhdx')


def test_custom_property_value_handles_null_value() -> None:
    v = CustomPropertyValue.from_json({'Name': 'Owner', 'Value': None})
    assert v == CustomPropertyValue('Owner', '')
