"""Typed records built from management-service query output."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping


def _text(row: Mapping[str, Any], key: str) -> str:
    val = row.get(key)
    return '' if val is None else str(val).strip()


@dataclass(frozen=True)
class HostCandidate:
    name: str
    rating: float

    @property
    def eligible(self) -> bool:
        return self.rating > 0

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'HostCandidate':
        raw = row.get('Rating')
        try:
            rating = float(raw) if raw is not None else 0.0
        except (TypeError, ValueError):
            rating = 0.0
        if not math.isfinite(rating):
            rating = 0.0
        return cls(name=_text(row, 'Name'), rating=rating)


@dataclass(frozen=True)
class HardwareProfile:
    name: str
    id: str = ''

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'HardwareProfile':
        return cls(name=_text(row, 'Name'), id=_text(row, 'ID'))


@dataclass(frozen=True)
class VMTemplate:
    name: str
    id: str = ''

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'VMTemplate':
        return cls(name=_text(row, 'Name'), id=_text(row, 'ID'))


@dataclass(frozen=True)
class VirtualHardDisk:
    name: str
    location: str = ''
    size_bytes: int = 0

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'VirtualHardDisk':
        try:
            size = int(row.get('Size') or 0)
        except (TypeError, ValueError):
            size = 0
        return cls(
            name=_text(row, 'Name'),
            location=_text(row, 'Location'),
            size_bytes=size,
        )


@dataclass(frozen=True)
class VMHost:
    name: str
    fqdn: str = ''
    host_group: str = ''

    @property
    def address(self) -> str:
        """Name used for remote commands and admin-share paths."""
        return self.fqdn or self.name

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'VMHost':
        return cls(
            name=_text(row, 'Name'),
            fqdn=_text(row, 'FQDN'),
            host_group=_text(row, 'HostGroup'),
        )


@dataclass(frozen=True)
class CustomPropertyValue:
    name: str
    value: str = ''

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> 'CustomPropertyValue':
        return cls(name=_text(row, 'Name'), value=_text(row, 'Value'))
