"""Result dataclasses used by batch style operations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BatchResult:
    created: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    # VMs that exist but whose post-create property cleanup failed.
    cleanup_failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cleanup_failed

    def as_dict(self) -> dict[str, object]:
        return {
            'created': list(self.created),
            'failed': dict(self.failed),
            'cleanup_failed': dict(self.cleanup_failed),
        }


@dataclass
class CleanupResult:
    cleared: dict[str, list[str]] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def as_dict(self) -> dict[str, object]:
        return {
            'cleared': {k: list(v) for k, v in self.cleared.items()},
            'failed': dict(self.failed),
        }
