# errors.py
from __future__ import annotations


class InvalidSpecError(ValueError):
    """A provider declaration (or the resource holding it) is malformed."""


class ProviderError(RuntimeError):
    """A single provider could not produce CIDRs. Never aborts reconciliation."""


class OwnershipConflictError(RuntimeError):
    """The target NetworkPolicy exists but is not controlled by the resource."""

    def __init__(self, namespace: str, name: str):
        super().__init__(
            f"networkpolicy {namespace}/{name} exists and is not controlled by BotNetworkPolicy"
        )
        self.namespace = namespace
        self.name = name
