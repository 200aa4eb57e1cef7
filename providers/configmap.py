# providers/configmap.py
from __future__ import annotations

from typing import List, Optional

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from botpolicy import extract_cidrs
from errors import ProviderError
from providers.base import Provider, sanitize


class ConfigMapProvider(Provider):
    """Reads newline, comma or semicolon separated CIDRs from one ConfigMap key."""

    def __init__(self, kube, namespace: str, name: str, key: str):
        self.kube = kube
        self.namespace = namespace
        self.name = name
        self.key = key

    def fetch(self, timeout: Optional[float] = None) -> List[str]:
        ref = f"{self.namespace}/{self.name}"
        try:
            cm = self.kube.get_configmap(self.namespace, self.name, timeout=timeout)
        except ApiException as e:
            raise ProviderError(f"fetching configmap {ref}: {e.reason}") from e
        except HTTPError as e:
            raise ProviderError(f"fetching configmap {ref}: {e}") from e
        if cm is None:
            raise ProviderError(f"configmap {ref} not found")

        data = cm.get("data", {}) or {}
        if self.key not in data:
            raise ProviderError(f"configmap {ref} missing key {self.key}")
        return sanitize(extract_cidrs(data[self.key]))

    def __repr__(self) -> str:
        return f"ConfigMapProvider({self.namespace}/{self.name}[{self.key}])"
