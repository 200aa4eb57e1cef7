# botpolicy.py
"""Accessors for the BotNetworkPolicy custom resource.

Resources are handled as the plain dicts returned by CustomObjectsApi, e.g.::

    {
      "apiVersion": "bot.networking.dev/v1alpha1",
      "kind": "BotNetworkPolicy",
      "metadata": {"name": "web", "namespace": "default", "uid": "..."},
      "spec": {
        "podSelector": {"matchLabels": {"app": "web"}},
        "providers": [{"name": "github"}, {"name": "configMap", "configMap": {...}}],
        "customCidrs": ["203.0.113.0/24"],
        "syncPeriod": "30m",
      },
    }
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

GROUP = "bot.networking.dev"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"
KIND = "BotNetworkPolicy"
PLURAL = "botnetworkpolicies"

NAME_ANNOTATION = f"{GROUP}/networkpolicy-name"
OWNER_LABEL = f"botnetworkpolicy.{GROUP}/owner"
NAME_SUFFIX = "-allow-bots"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def _meta(obj: dict) -> dict:
    return (obj or {}).get("metadata", {}) or {}


def _spec(obj: dict) -> dict:
    return (obj or {}).get("spec", {}) or {}


def name_of(obj: dict) -> str:
    return _meta(obj).get("name", "")


def namespace_of(obj: dict) -> str:
    return _meta(obj).get("namespace", "")


def uid_of(obj: dict) -> str:
    return _meta(obj).get("uid", "") or ""


def providers_of(resource: dict) -> List[dict]:
    return list(_spec(resource).get("providers", []) or [])


def custom_cidrs_of(resource: dict) -> List[str]:
    return list(_spec(resource).get("customCidrs", []) or [])


def pod_selector_of(resource: dict) -> Optional[dict]:
    return _spec(resource).get("podSelector")


def policy_types_of(resource: dict) -> List[str]:
    return list(_spec(resource).get("policyTypes", []) or [])


def ingress_flag(resource: dict) -> Optional[bool]:
    return _spec(resource).get("ingress")


def egress_flag(resource: dict) -> Optional[bool]:
    return _spec(resource).get("egress")


def ingress_enabled(resource: dict) -> bool:
    """Ingress defaults to enabled."""
    flag = ingress_flag(resource)
    return True if flag is None else bool(flag)


def egress_enabled(resource: dict) -> bool:
    """Egress defaults to disabled."""
    return bool(egress_flag(resource))


def network_policy_name(resource: dict) -> str:
    ann = _meta(resource).get("annotations", {}) or {}
    override = (ann.get(NAME_ANNOTATION) or "").strip()
    if override:
        return override
    return name_of(resource) + NAME_SUFFIX


def owner_reference(resource: dict) -> Dict[str, Any]:
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "name": name_of(resource),
        "uid": uid_of(resource),
        "controller": True,
        "blockOwnerDeletion": True,
    }


def controller_reference(obj: dict) -> Optional[dict]:
    for ref in _meta(obj).get("ownerReferences", []) or []:
        if ref.get("controller"):
            return ref
    return None


def is_controlled_by(obj: dict, resource: dict) -> bool:
    """Compare identifiers only: the controller ownerReference uid when the
    object has one, the owner label otherwise."""
    ref = controller_reference(obj)
    if ref is not None:
        return (
            ref.get("kind") == KIND
            and bool(uid_of(resource))
            and ref.get("uid") == uid_of(resource)
        )
    labels = _meta(obj).get("labels", {}) or {}
    return labels.get(OWNER_LABEL) == name_of(resource)


def extract_cidrs(payload: str) -> List[str]:
    """Split newline, comma or semicolon separated CIDRs; trims and drops blanks."""
    return [t.strip() for t in re.split(r"[\n,;]", payload or "") if t.strip()]


def parse_duration(value: str) -> float:
    """Parse a duration such as ``90s``, ``10m`` or ``1h30m`` into seconds."""
    text = (value or "").strip()
    if not text:
        return 0.0
    if text == "0":
        return 0.0
    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return total


def sync_period_seconds(resource: dict, default: float) -> float:
    raw = _spec(resource).get("syncPeriod")
    if not raw:
        return default
    seconds = parse_duration(str(raw))
    return seconds if seconds > 0 else default
