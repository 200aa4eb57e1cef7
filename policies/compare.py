# policies/compare.py
"""Structural comparison of NetworkPolicy dicts.

Only the fields the controller manages are compared. Lists are compared
in order, except policyTypes which is compared sorted. Missing and empty
(None, [] or {}) are treated alike, matching how the API server omits
empty fields on read-back.
"""
from __future__ import annotations

from typing import Any, List


def _list(value: Any) -> List[Any]:
    return list(value or [])


def string_lists_equal(a, b) -> bool:
    return _list(a) == _list(b)


def selectors_equal(a: dict, b: dict) -> bool:
    a = a or {}
    b = b or {}
    if (a.get("matchLabels") or {}) != (b.get("matchLabels") or {}):
        return False

    a_exprs = _list(a.get("matchExpressions"))
    b_exprs = _list(b.get("matchExpressions"))
    if len(a_exprs) != len(b_exprs):
        return False
    for ae, be in zip(a_exprs, b_exprs):
        if ae.get("key") != be.get("key") or ae.get("operator") != be.get("operator"):
            return False
        if not string_lists_equal(ae.get("values"), be.get("values")):
            return False
    return True


def peers_equal(a, b) -> bool:
    a = _list(a)
    b = _list(b)
    if len(a) != len(b):
        return False
    for ap, bp in zip(a, b):
        a_block = (ap or {}).get("ipBlock")
        b_block = (bp or {}).get("ipBlock")
        if (a_block is None) != (b_block is None):
            return False
        if a_block is None:
            continue
        if a_block.get("cidr") != b_block.get("cidr"):
            return False
        if not string_lists_equal(a_block.get("except"), b_block.get("except")):
            return False
    return True


def _rules_equal(a, b, peer_key: str) -> bool:
    a = _list(a)
    b = _list(b)
    if len(a) != len(b):
        return False
    return all(peers_equal((ar or {}).get(peer_key), (br or {}).get(peer_key)) for ar, br in zip(a, b))


def ingress_equal(a, b) -> bool:
    return _rules_equal(a, b, "from")


def egress_equal(a, b) -> bool:
    return _rules_equal(a, b, "to")


def network_policies_equal(existing: dict, desired: dict) -> bool:
    e = (existing or {}).get("spec", {}) or {}
    d = (desired or {}).get("spec", {}) or {}

    if sorted(_list(e.get("policyTypes"))) != sorted(_list(d.get("policyTypes"))):
        return False
    if not ingress_equal(e.get("ingress"), d.get("ingress")):
        return False
    if not egress_equal(e.get("egress"), d.get("egress")):
        return False
    return selectors_equal(e.get("podSelector"), d.get("podSelector"))
