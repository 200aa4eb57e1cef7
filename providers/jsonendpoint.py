# providers/jsonendpoint.py
"""Generic JSON endpoint provider.

The response is navigated with a dot-separated field path and the value found
there is interpreted as CIDRs: a list of strings, a list of objects (optionally
filtered on field values), or a single string.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from errors import ProviderError
from providers.base import Provider, sanitize
from providers.static import get_json

# Probed in order, first non-empty string wins.
CIDR_FIELDS: Tuple[str, ...] = ("ip_prefix", "ipv4Prefix", "ipv6Prefix", "cidr", "ipPrefix", "ip")


@dataclass(frozen=True)
class FieldCondition:
    field: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class JSONFilter:
    field_conditions: Tuple[FieldCondition, ...] = ()


@dataclass(frozen=True)
class SecretHeaderRef:
    header: str
    secret_name: str
    secret_key: str


def navigate_field(document: Any, path: str) -> Any:
    current = document
    for segment in (path or "").split("."):
        if not segment:
            continue
        if not isinstance(current, dict):
            raise ProviderError(f"segment {segment!r} not an object")
        if segment not in current:
            raise ProviderError(f"missing segment {segment!r}")
        current = current[segment]
    return current


def matches_filter(obj: Dict[str, Any], flt: JSONFilter) -> bool:
    """Every condition must hold. A condition without values only requires the field."""
    for cond in flt.field_conditions:
        value = obj.get(cond.field)
        if not isinstance(value, str):
            return False
        if not cond.values:
            continue
        wanted = value.strip().lower()
        if not any(wanted == v.strip().lower() for v in cond.values):
            return False
    return True


def extract_cidr_from_object(obj: Dict[str, Any]) -> str:
    for key in CIDR_FIELDS:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def interpret_cidrs(value: Any, flt: Optional[JSONFilter] = None) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ProviderError(f"unsupported field type {type(value).__name__}")

    cidrs: List[str] = []
    for item in value:
        if isinstance(item, str):
            cidrs.append(item)
        elif isinstance(item, dict):
            if flt is not None and not matches_filter(item, flt):
                continue
            cidr = extract_cidr_from_object(item)
            if cidr:
                cidrs.append(cidr)
        else:
            raise ProviderError(f"array value {item!r} is neither a string nor an object")
    return cidrs


@dataclass
class JSONEndpointProvider(Provider):
    http: httpx.Client
    kube: Any
    namespace: str
    url: str
    field_path: str
    headers: Dict[str, str] = field(default_factory=dict)
    secret_headers: Sequence[SecretHeaderRef] = ()
    filter: Optional[JSONFilter] = None

    def fetch(self, timeout: Optional[float] = None) -> List[str]:
        headers = self.resolve_headers(timeout=timeout)
        payload = get_json(self.http, self.url, headers=headers, timeout=timeout)
        value = navigate_field(payload, self.field_path)
        return sanitize(interpret_cidrs(value, self.filter))

    def resolve_headers(self, timeout: Optional[float] = None) -> Dict[str, str]:
        headers = dict(self.headers)
        for ref in self.secret_headers:
            headers[ref.header] = self._secret_value(ref, timeout)
        return headers

    def _secret_value(self, ref: SecretHeaderRef, timeout: Optional[float]) -> str:
        if self.kube is None:
            raise ProviderError("kube client not configured for secret-backed headers")

        key = f"{self.namespace}/{ref.secret_name}"
        try:
            secret = self.kube.get_secret(self.namespace, ref.secret_name, timeout=timeout)
        except ApiException as e:
            raise ProviderError(f"fetching secret {key}: {e.reason}") from e
        except HTTPError as e:
            raise ProviderError(f"fetching secret {key}: {e}") from e
        if secret is None:
            raise ProviderError(f"fetching secret {key}: not found")

        data = secret.get("data", {}) or {}
        if ref.secret_key not in data:
            raise ProviderError(f"secret {key} missing key {ref.secret_key}")
        try:
            return base64.b64decode(data[ref.secret_key]).decode("utf-8")
        except ValueError as e:
            # binascii.Error and UnicodeDecodeError
            raise ProviderError(f"secret {key} key {ref.secret_key} is not valid text") from e
