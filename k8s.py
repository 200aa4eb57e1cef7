# k8s.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

import botpolicy

logger = logging.getLogger("k8s")

EVENT_SOURCE = "botnetworkpolicy-controller"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class KubeClient:
    """Thin wrapper over the kubernetes API returning plain JSON-shaped dicts.

    Reads return None for 404 so callers do not have to inspect ApiException.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        self.api_client = api_client or client.ApiClient()
        self.custom = client.CustomObjectsApi(self.api_client)
        self.core = client.CoreV1Api(self.api_client)
        self.networking = client.NetworkingV1Api(self.api_client)

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        # camelCase keys as on the wire, unlike model.to_dict()
        return self.api_client.sanitize_for_serialization(obj)

    @staticmethod
    def _kwargs(timeout: Optional[float]) -> Dict[str, Any]:
        return {"_request_timeout": timeout} if timeout is not None else {}

    # BotNetworkPolicy
    def get_botpolicy(self, namespace: str, name: str) -> Optional[dict]:
        try:
            return self.custom.get_namespaced_custom_object(
                group=botpolicy.GROUP,
                version=botpolicy.VERSION,
                namespace=namespace,
                plural=botpolicy.PLURAL,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def list_botpolicies(self, namespace: str = "") -> List[dict]:
        if namespace:
            res = self.custom.list_namespaced_custom_object(
                group=botpolicy.GROUP,
                version=botpolicy.VERSION,
                namespace=namespace,
                plural=botpolicy.PLURAL,
            )
        else:
            res = self.custom.list_cluster_custom_object(
                group=botpolicy.GROUP,
                version=botpolicy.VERSION,
                plural=botpolicy.PLURAL,
            )
        return res.get("items", [])

    def patch_botpolicy_status(self, namespace: str, name: str, status: dict) -> None:
        self.custom.patch_namespaced_custom_object_status(
            group=botpolicy.GROUP,
            version=botpolicy.VERSION,
            namespace=namespace,
            plural=botpolicy.PLURAL,
            name=name,
            body={"status": status},
        )

    # NetworkPolicy
    def get_networkpolicy(self, namespace: str, name: str) -> Optional[dict]:
        try:
            return self._to_dict(self.networking.read_namespaced_network_policy(name, namespace))
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def create_networkpolicy(self, namespace: str, body: dict) -> None:
        self.networking.create_namespaced_network_policy(namespace, body)

    def replace_networkpolicy(self, namespace: str, name: str, body: dict) -> None:
        # body carries metadata.resourceVersion, so a concurrent write fails with 409
        self.networking.replace_namespaced_network_policy(name, namespace, body)

    # provider inputs
    def get_configmap(self, namespace: str, name: str, timeout: Optional[float] = None) -> Optional[dict]:
        try:
            return self._to_dict(
                self.core.read_namespaced_config_map(name, namespace, **self._kwargs(timeout))
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def get_secret(self, namespace: str, name: str, timeout: Optional[float] = None) -> Optional[dict]:
        try:
            return self._to_dict(
                self.core.read_namespaced_secret(name, namespace, **self._kwargs(timeout))
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    # events
    def create_event(self, resource: dict, event_type: str, reason: str, message: str) -> None:
        """Best effort: a failed event write is logged, never raised."""
        namespace = botpolicy.namespace_of(resource)
        now = _now()
        body = {
            "apiVersion": "v1",
            "kind": "Event",
            "metadata": {
                "generateName": f"{botpolicy.name_of(resource)}.",
                "namespace": namespace,
            },
            "involvedObject": {
                "apiVersion": botpolicy.API_VERSION,
                "kind": botpolicy.KIND,
                "name": botpolicy.name_of(resource),
                "namespace": namespace,
                "uid": botpolicy.uid_of(resource),
            },
            "type": event_type,
            "reason": reason,
            "message": message,
            "count": 1,
            "firstTimestamp": now,
            "lastTimestamp": now,
            "source": {"component": EVENT_SOURCE},
        }
        try:
            self.core.create_namespaced_event(namespace, body)
        except ApiException as e:
            logger.warning("event %s for %s/%s not recorded: %s",
                           reason, namespace, botpolicy.name_of(resource), e.reason)
        except HTTPError as e:
            logger.warning("event %s for %s/%s not recorded: %s",
                           reason, namespace, botpolicy.name_of(resource), e)
