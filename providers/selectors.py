# providers/selectors.py
"""Per-source CIDR selectors for the built-in cloud endpoints.

Each selector holds its filters and is called with the decoded JSON
document of its endpoint, returning the raw CIDR strings it selected.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from errors import ProviderError


def _lower_set(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(str(v).strip().lower() for v in values or [])


def _upper_set(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(str(v).strip().upper() for v in values or [])


def _prefixes(data: Dict[str, Any]) -> List[Any]:
    prefixes = (data or {}).get("prefixes")
    if not isinstance(prefixes, list):
        raise ProviderError("missing prefixes")
    return prefixes


def _str_field(item: dict, key: str) -> str:
    value = item.get(key)
    return value.strip() if isinstance(value, str) else ""


class GoogleSelector:
    """goog.json: ``{"prefixes": [{"ipv4Prefix": ..., "scope": ...}, ...]}``"""

    def __init__(self, scopes: Optional[Iterable[str]] = None):
        self.scopes = _lower_set(scopes)

    def __call__(self, data: Dict[str, Any]) -> List[str]:
        results: List[str] = []
        for item in _prefixes(data):
            if not isinstance(item, dict):
                continue
            if self.scopes and _str_field(item, "scope").lower() not in self.scopes:
                continue
            for key in ("ipv4Prefix", "ipv6Prefix"):
                value = _str_field(item, key)
                if value:
                    results.append(value)
        return results

    def __repr__(self) -> str:
        return f"GoogleSelector(scopes={sorted(self.scopes)})"


class AWSSelector:
    """ip-ranges.json. Empty filters match everything; set filters are ANDed."""

    DEFAULT_SERVICES: Tuple[str, ...] = ("AMAZON", "AMAZON_CONNECT")
    DEFAULT_REGIONS: Tuple[str, ...] = ("GLOBAL", "us-east-1")

    def __init__(
        self,
        services: Optional[Iterable[str]] = None,
        regions: Optional[Iterable[str]] = None,
        network_border_groups: Optional[Iterable[str]] = None,
    ):
        self.services = _upper_set(services)
        self.regions = _lower_set(regions)
        self.network_border_groups = _lower_set(network_border_groups)

    @classmethod
    def with_defaults(cls) -> "AWSSelector":
        return cls(services=cls.DEFAULT_SERVICES, regions=cls.DEFAULT_REGIONS)

    def _matches(self, item: dict) -> bool:
        if self.services and _str_field(item, "service").upper() not in self.services:
            return False
        if self.regions and _str_field(item, "region").lower() not in self.regions:
            return False
        if (
            self.network_border_groups
            and _str_field(item, "network_border_group").lower() not in self.network_border_groups
        ):
            return False
        return True

    def __call__(self, data: Dict[str, Any]) -> List[str]:
        results: List[str] = []
        for item in _prefixes(data):
            if not isinstance(item, dict) or not self._matches(item):
                continue
            value = _str_field(item, "ip_prefix")
            if value:
                results.append(value)
        return results

    def __repr__(self) -> str:
        return (
            f"AWSSelector(services={sorted(self.services)}, regions={sorted(self.regions)}, "
            f"network_border_groups={sorted(self.network_border_groups)})"
        )


class GitHubSelector:
    """api.github.com/meta: role-keyed arrays (``hooks``, ``actions``, ...)."""

    DEFAULT_ROLE = "hooks"

    def __init__(self, roles: Optional[Iterable[str]] = None):
        self.roles = tuple(str(r).strip().lower() for r in roles or [] if str(r).strip())

    def __call__(self, data: Dict[str, Any]) -> List[str]:
        data = data or {}
        roles = self.roles or (self.DEFAULT_ROLE,)
        results: List[str] = []
        for role in roles:
            entries = data.get(role)
            if not isinstance(entries, list):
                continue
            for entry in entries:
                if isinstance(entry, str) and entry.strip():
                    results.append(entry.strip())

        if results:
            return results
        # an empty published hooks list is tolerated for the default role only
        if not self.roles and data.get(self.DEFAULT_ROLE) == []:
            return []
        raise ProviderError(f"no CIDRs found for roles: {list(roles)}")

    def __repr__(self) -> str:
        return f"GitHubSelector(roles={list(self.roles)})"
