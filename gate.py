# gate.py
"""Shape validation for BotNetworkPolicy resources.

A resource is only reconciled when every provider declaration passes; a
single bad declaration invalidates the whole resource.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import botpolicy
from errors import InvalidSpecError

# discriminator (lower-cased) -> configuration block key
PROVIDER_BLOCKS = {
    "google": "google",
    "aws": "aws",
    "github": "github",
    "configmap": "configMap",
    "jsonendpoint": "jsonEndpoint",
}

POLICY_TYPES = ("Ingress", "Egress")


@dataclass
class GateResult:
    ok: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _validate_configmap(cfg: dict) -> None:
    if _blank(cfg.get("name")) or _blank(cfg.get("key")):
        raise InvalidSpecError("configMap provider requires name and key")


def _validate_jsonendpoint(cfg: dict) -> None:
    if _blank(cfg.get("url")) or _blank(cfg.get("fieldPath")):
        raise InvalidSpecError("jsonEndpoint provider requires url and fieldPath")
    headers = cfg.get("headers") or {}
    if not isinstance(headers, dict):
        raise InvalidSpecError("jsonEndpoint headers must be a map of strings")
    for ref in cfg.get("headerSecretRefs", []) or []:
        if _blank(ref.get("name")):
            raise InvalidSpecError("jsonEndpoint headerSecretRefs requires name")
        sel = ref.get("secretKeyRef") or {}
        if _blank(sel.get("name")) or _blank(sel.get("key")):
            raise InvalidSpecError("jsonEndpoint headerSecretRefs requires secret name and key")
    flt = cfg.get("filter") or {}
    for cond in flt.get("fieldConditions", []) or []:
        if _blank(cond.get("field")):
            raise InvalidSpecError("jsonEndpoint filter fieldConditions requires field")


def validate_provider(spec: dict) -> None:
    """Raise InvalidSpecError unless ``spec`` is a well-formed provider declaration."""
    name = (spec or {}).get("name") or ""
    kind = str(name).strip().lower()
    if kind not in PROVIDER_BLOCKS:
        raise InvalidSpecError(f"unsupported provider: {name}")

    own_block = PROVIDER_BLOCKS[kind]
    for other in PROVIDER_BLOCKS.values():
        if other != own_block and spec.get(other) is not None:
            raise InvalidSpecError(f"{name} provider must not set {other} configuration")

    cfg = spec.get(own_block)
    if kind == "configmap":
        if cfg is None:
            raise InvalidSpecError("configMap provider requires configMap configuration")
        _validate_configmap(cfg)
    elif kind == "jsonendpoint":
        if cfg is None:
            raise InvalidSpecError("jsonEndpoint provider requires jsonEndpoint configuration")
        _validate_jsonendpoint(cfg)


def validate_resource(resource: dict) -> None:
    for spec in botpolicy.providers_of(resource):
        validate_provider(spec)

    for pt in botpolicy.policy_types_of(resource):
        if pt not in POLICY_TYPES:
            raise InvalidSpecError(f"unsupported policy type: {pt}")

    try:
        botpolicy.sync_period_seconds(resource, default=0.0)
    except ValueError as e:
        raise InvalidSpecError(f"invalid syncPeriod: {e}") from e


def check_resource(resource: dict) -> GateResult:
    """Non-raising variant used by the plan tooling."""
    errors: List[str] = []
    warnings: List[str] = []
    try:
        validate_resource(resource)
    except InvalidSpecError as e:
        errors.append(str(e))

    if not botpolicy.providers_of(resource) and not botpolicy.custom_cidrs_of(resource):
        warnings.append("no providers or customCidrs declared; the policy will allow no peers")

    return GateResult(ok=len(errors) == 0, errors=errors, warnings=warnings)
