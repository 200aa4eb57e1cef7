from __future__ import annotations

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import ProtocolError

from k8s import KubeClient

RESOURCE = {"metadata": {"name": "web", "namespace": "default", "uid": "uid-web"}}


class _Core:
    def __init__(self, error=None):
        self.error = error
        self.created = []

    def create_namespaced_event(self, namespace, body):
        if self.error is not None:
            raise self.error
        self.created.append((namespace, body))


def _kube(core: _Core) -> KubeClient:
    kube = KubeClient(api_client=client.ApiClient())
    kube.core = core
    return kube


def test_create_event_body() -> None:
    core = _Core()
    _kube(core).create_event(RESOURCE, "Warning", "ProviderWarning", "provider google fetch error: x")

    namespace, body = core.created[0]
    assert namespace == "default"
    assert body["metadata"]["generateName"] == "web."
    assert body["involvedObject"]["kind"] == "BotNetworkPolicy"
    assert body["involvedObject"]["uid"] == "uid-web"
    assert (body["type"], body["reason"]) == ("Warning", "ProviderWarning")


@pytest.mark.parametrize(
    "error",
    [ApiException(status=403, reason="Forbidden"), ProtocolError("Connection aborted.")],
)
def test_create_event_failures_are_logged_not_raised(error, caplog) -> None:
    _kube(_Core(error)).create_event(RESOURCE, "Warning", "InvalidSpec", "bad")
    assert "event InvalidSpec for default/web not recorded" in caplog.text
