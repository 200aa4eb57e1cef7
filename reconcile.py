# reconcile.py
"""Reconciliation of one BotNetworkPolicy into its NetworkPolicy.

Each call is a fresh run: fetch -> validate -> collect CIDRs -> build desired
-> diff and apply -> report when to sync next. Nothing is kept between runs.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

import botpolicy
from config import Settings
from errors import InvalidSpecError, OwnershipConflictError, ProviderError
from gate import check_resource, validate_resource
from policies.compare import network_policies_equal
from policies.networkpolicy import build_network_policy
from providers.factory import ProviderFactory

logger = logging.getLogger("reconcile")

CREATE = "create"
UPDATE = "update"
NOOP = "noop"
CONFLICT = "conflict"

# read-compare-write attempts when the API server reports a write conflict (409)
APPLY_ATTEMPTS = 3


@dataclass
class ReconcileResult:
    requeue_after: Optional[float] = None  # None: do not schedule a follow-up
    action: Optional[str] = None
    cidr_count: int = 0
    provider_count: int = 0
    warnings: List[str] = field(default_factory=list)


class ReconcilePlan(dict):
    """A small, json-serializable planning object."""

    # kept as dict subclass for easy printing/JSON dumping


def _rfc3339_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Reconciler:
    def __init__(self, kube, factory: ProviderFactory, settings: Settings):
        self.kube = kube
        self.factory = factory
        self.settings = settings

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        resource = self.kube.get_botpolicy(namespace, name)
        if resource is None:
            logger.debug("%s/%s not found; nothing to do", namespace, name)
            return ReconcileResult()

        try:
            validate_resource(resource)
        except InvalidSpecError as e:
            # no requeue: only a change to the resource retriggers it
            logger.warning("%s/%s: invalid specification: %s", namespace, name, e)
            self.kube.create_event(resource, "Warning", "InvalidSpec", str(e))
            return ReconcileResult(warnings=[str(e)])

        cidrs, warnings, provider_count = self.collect_cidrs(resource)
        for warning in warnings:
            self.kube.create_event(resource, "Warning", "ProviderWarning", warning)

        action = self._apply(resource, cidrs)
        self._update_status(resource, provider_count)

        sync_after = botpolicy.sync_period_seconds(resource, self.settings.default_sync_seconds)
        logger.info("%s/%s: reconciliation complete (%s, %d CIDRs), requeue in %ss",
                    namespace, name, action, len(cidrs), sync_after)
        return ReconcileResult(
            requeue_after=sync_after,
            action=action,
            cidr_count=len(cidrs),
            provider_count=provider_count,
            warnings=warnings,
        )

    def collect_cidrs(self, resource: dict) -> Tuple[List[str], List[str], int]:
        """Merge every provider that succeeds with the literal CIDRs.

        Returns (sorted unique CIDRs, warnings for skipped providers, successful provider count).
        """
        namespace = botpolicy.namespace_of(resource)
        merged = set()
        warnings: List[str] = []
        succeeded = 0

        for spec in botpolicy.providers_of(resource):
            pname = spec.get("name", "")
            try:
                provider = self.factory.from_spec(namespace, spec)
            except InvalidSpecError as e:
                warnings.append(f"provider {pname} skipped: {e}")
                continue

            try:
                cidrs = provider.fetch(timeout=self.settings.http_timeout_seconds)
            except ProviderError as e:
                warnings.append(f"provider {pname} fetch error: {e}")
                continue

            succeeded += 1
            merged.update(c.strip() for c in cidrs if c.strip())

        merged.update(c.strip() for c in botpolicy.custom_cidrs_of(resource) if c and c.strip())

        for warning in warnings:
            logger.warning("%s/%s: %s", namespace, botpolicy.name_of(resource), warning)

        result = sorted(merged)
        logger.info("%s/%s: collected %d CIDRs", namespace, botpolicy.name_of(resource), len(result))
        return result, warnings, succeeded

    def _apply(self, resource: dict, cidrs: List[str]) -> str:
        attempt = 1
        while True:
            try:
                return self.ensure_network_policy(resource, cidrs)
            except ApiException as e:
                if e.status != 409 or attempt >= APPLY_ATTEMPTS:
                    raise
                logger.info("%s/%s: write conflict, retrying (%d/%d)", botpolicy.namespace_of(resource),
                            botpolicy.name_of(resource), attempt, APPLY_ATTEMPTS)
            attempt += 1

    def ensure_network_policy(self, resource: dict, cidrs: List[str]) -> str:
        desired = build_network_policy(resource, cidrs)
        meta = desired["metadata"]
        namespace, name = meta["namespace"], meta["name"]

        existing = self.kube.get_networkpolicy(namespace, name)
        if existing is None:
            meta["ownerReferences"] = [botpolicy.owner_reference(resource)]
            logger.info("creating networkpolicy %s/%s", namespace, name)
            self.kube.create_networkpolicy(namespace, desired)
            return CREATE

        if not botpolicy.is_controlled_by(existing, resource):
            raise OwnershipConflictError(namespace, name)

        adopt = botpolicy.controller_reference(existing) is None
        if not adopt and network_policies_equal(existing, desired):
            return NOOP

        updated = copy.deepcopy(existing)
        updated["spec"] = desired["spec"]
        updated.setdefault("metadata", {})["labels"] = meta["labels"]
        updated["metadata"].pop("annotations", None)
        if adopt:
            # label-owned: adopt as controller
            refs = updated["metadata"].get("ownerReferences") or []
            updated["metadata"]["ownerReferences"] = refs + [botpolicy.owner_reference(resource)]
        logger.info("updating networkpolicy %s/%s", namespace, name)
        self.kube.replace_networkpolicy(namespace, name, updated)
        return UPDATE

    def _update_status(self, resource: dict, provider_count: int) -> None:
        status = {"lastSyncTime": _rfc3339_now(), "providerCount": provider_count}
        try:
            self.kube.patch_botpolicy_status(
                botpolicy.namespace_of(resource), botpolicy.name_of(resource), status
            )
        except ApiException as e:
            logger.warning("%s/%s: status update failed: %s",
                           botpolicy.namespace_of(resource), botpolicy.name_of(resource), e.reason)
        except HTTPError as e:
            logger.warning("%s/%s: status update failed: %s",
                           botpolicy.namespace_of(resource), botpolicy.name_of(resource), e)

    def plan(self, namespace: str, name: str) -> ReconcilePlan:
        """Compute what reconcile() *would* do, without writing anything."""
        resource = self.kube.get_botpolicy(namespace, name)
        if resource is None:
            return ReconcilePlan(namespace=namespace, name=name, action=None, errors=["not found"])

        gate = check_resource(resource)
        if not gate.ok:
            return ReconcilePlan(
                namespace=namespace, name=name, action=None,
                errors=gate.errors, warnings=gate.warnings,
            )

        cidrs, warnings, _ = self.collect_cidrs(resource)
        desired = build_network_policy(resource, cidrs)
        existing = self.kube.get_networkpolicy(namespace, desired["metadata"]["name"])
        if existing is None:
            action = CREATE
        elif not botpolicy.is_controlled_by(existing, resource):
            action = CONFLICT
        elif botpolicy.controller_reference(existing) is not None and network_policies_equal(existing, desired):
            action = NOOP
        else:
            action = UPDATE

        return ReconcilePlan(
            namespace=namespace,
            name=name,
            action=action,
            networkpolicy=desired["metadata"]["name"],
            cidrs=cidrs,
            warnings=gate.warnings + warnings,
            errors=[],
            desired=desired,
        )


def print_plan(plan: ReconcilePlan) -> None:
    print(f"[plan] {plan.get('namespace')}/{plan.get('name')} action={plan.get('action')}")
    if plan.get("networkpolicy"):
        print(f"[plan] networkpolicy: {plan['networkpolicy']}")
    for k in ("cidrs", "warnings", "errors"):
        items = plan.get(k, []) or []
        if not items:
            continue
        print(f"[plan] {k}:")
        for item in items:
            print(f"  - {item}")
