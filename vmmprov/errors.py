"""Project-specific exception types."""

from __future__ import annotations


class VMMProvError(RuntimeError):
    """Base error for domain-level vmmprov failures."""


class MissingParameterError(VMMProvError):
    """Raised when required inputs are absent or conflict with each other."""


class ResourceNotFoundError(VMMProvError):
    """Raised when the management service cannot resolve a named object."""

    def __init__(self, kind: str, name: str, detail: str = ''):
        self.kind = kind
        self.name = name
        msg = f'{kind} not found: {name!r}'
        if detail:
            msg = f'{msg} ({detail})'
        super().__init__(msg)


class MissingModuleError(ResourceNotFoundError):
    """Raised when the VMM PowerShell module is not available locally."""

    def __init__(self, name: str):
        super().__init__(
            'PowerShell module',
            name,
            'install the VMM console on this machine',
        )


class NoEligibleHostError(VMMProvError):
    """Raised when every candidate host in the group is rated zero."""


class AccessDeniedError(VMMProvError):
    """Raised when a remote copy is refused by the target host."""


class CreationFailedError(VMMProvError):
    """Raised when the VM creation call reports failure."""


class UnexpectedOutputError(VMMProvError):
    """Raised when a VMM query prints something other than the expected JSON."""
