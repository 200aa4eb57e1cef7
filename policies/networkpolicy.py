# policies/networkpolicy.py
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

import botpolicy

INGRESS = "Ingress"
EGRESS = "Egress"


def determine_policy_types(
    requested: Optional[Iterable[str]],
    ingress: Optional[bool],
    egress: Optional[bool],
) -> List[str]:
    """
    Explicit policy types win (deduplicated, order kept). Otherwise:
    ingress unless disabled, egress only when enabled, never nothing.
    """
    requested = list(requested or [])
    if requested:
        return list(dict.fromkeys(requested))

    enabled = set()
    if ingress is None or ingress:
        enabled.add(INGRESS)
    if egress:
        enabled.add(EGRESS)
    if not enabled:
        enabled.add(INGRESS)
    return sorted(enabled)


def ip_block_peers(cidrs: Iterable[str]) -> List[Dict[str, Any]]:
    return [{"ipBlock": {"cidr": cidr}} for cidr in cidrs]


def build_network_policy(resource: dict, cidrs: List[str]) -> Dict[str, Any]:
    """
    Render the NetworkPolicy a BotNetworkPolicy asks for.
    Pure: the same resource and CIDR list always give an equal dict.
    """
    policy_types = determine_policy_types(
        botpolicy.policy_types_of(resource),
        botpolicy.ingress_flag(resource),
        botpolicy.egress_flag(resource),
    )

    ingress_rules: List[Dict[str, Any]] = []
    egress_rules: List[Dict[str, Any]] = []
    if cidrs:
        if INGRESS in policy_types:
            ingress_rules.append({"from": ip_block_peers(cidrs)})
        if EGRESS in policy_types:
            egress_rules.append({"to": ip_block_peers(cidrs)})

    pod_selector = botpolicy.pod_selector_of(resource)

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "NetworkPolicy",
        "metadata": {
            "name": botpolicy.network_policy_name(resource),
            "namespace": botpolicy.namespace_of(resource),
            "labels": {botpolicy.OWNER_LABEL: botpolicy.name_of(resource)},
        },
        "spec": {
            "podSelector": copy.deepcopy(pod_selector) if pod_selector else {},
            "policyTypes": policy_types,
            "ingress": ingress_rules,
            "egress": egress_rules,
        },
    }
