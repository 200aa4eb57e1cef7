from __future__ import annotations

import base64
import copy
from typing import Callable, Dict, Optional

import httpx
import pytest

from config import Settings


class FakeKube:
    """In-memory stand-in for k8s.KubeClient."""

    def __init__(self) -> None:
        self.botpolicies: Dict[tuple, dict] = {}
        self.networkpolicies: Dict[tuple, dict] = {}
        self.configmaps: Dict[tuple, dict] = {}
        self.secrets: Dict[tuple, dict] = {}
        self.events: list[tuple] = []
        self.statuses: Dict[tuple, dict] = {}
        self.writes: list[tuple] = []

    # seeding helpers
    def add_botpolicy(self, resource: dict) -> dict:
        meta = resource["metadata"]
        self.botpolicies[(meta["namespace"], meta["name"])] = resource
        return resource

    def add_configmap(self, namespace: str, name: str, data: dict) -> None:
        self.configmaps[(namespace, name)] = {
            "metadata": {"name": name, "namespace": namespace},
            "data": data,
        }

    def add_secret(self, namespace: str, name: str, data: Dict[str, str]) -> None:
        encoded = {k: base64.b64encode(v.encode()).decode() for k, v in data.items()}
        self.secrets[(namespace, name)] = {
            "metadata": {"name": name, "namespace": namespace},
            "data": encoded,
        }

    def add_networkpolicy(self, policy: dict) -> None:
        meta = policy["metadata"]
        self.networkpolicies[(meta["namespace"], meta["name"])] = copy.deepcopy(policy)

    # KubeClient surface
    def get_botpolicy(self, namespace: str, name: str) -> Optional[dict]:
        return self.botpolicies.get((namespace, name))

    def list_botpolicies(self, namespace: str = "") -> list[dict]:
        return [r for (ns, _), r in self.botpolicies.items() if not namespace or ns == namespace]

    def patch_botpolicy_status(self, namespace: str, name: str, status: dict) -> None:
        self.statuses[(namespace, name)] = status

    def get_networkpolicy(self, namespace: str, name: str) -> Optional[dict]:
        np = self.networkpolicies.get((namespace, name))
        return copy.deepcopy(np) if np is not None else None

    def create_networkpolicy(self, namespace: str, body: dict) -> None:
        self.writes.append(("create", namespace, body["metadata"]["name"]))
        self.networkpolicies[(namespace, body["metadata"]["name"])] = copy.deepcopy(body)

    def replace_networkpolicy(self, namespace: str, name: str, body: dict) -> None:
        self.writes.append(("replace", namespace, name))
        self.networkpolicies[(namespace, name)] = copy.deepcopy(body)

    def get_configmap(self, namespace: str, name: str, timeout=None) -> Optional[dict]:
        return self.configmaps.get((namespace, name))

    def get_secret(self, namespace: str, name: str, timeout=None) -> Optional[dict]:
        return self.secrets.get((namespace, name))

    def create_event(self, resource: dict, event_type: str, reason: str, message: str) -> None:
        self.events.append((event_type, reason, message))


def mock_http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_http(routes: Dict[str, object], status: int = 200) -> httpx.Client:
    """Serve a fixed JSON body per URL; unknown URLs get 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(status, json=body)

    return mock_http(handler)


@pytest.fixture
def kube() -> FakeKube:
    return FakeKube()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        google_endpoint="https://google.test/goog.json",
        aws_endpoint="https://aws.test/ip-ranges.json",
        github_endpoint="https://github.test/meta",
        http_timeout_seconds=5.0,
    )
