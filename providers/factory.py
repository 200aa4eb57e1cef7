# providers/factory.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from config import Settings
from gate import validate_provider
from providers.base import Provider
from providers.configmap import ConfigMapProvider
from providers.jsonendpoint import (
    FieldCondition,
    JSONEndpointProvider,
    JSONFilter,
    SecretHeaderRef,
)
from providers.selectors import AWSSelector, GitHubSelector, GoogleSelector
from providers.static import StaticHTTPProvider


def _url(block: Optional[dict], default: str) -> str:
    url = ((block or {}).get("url") or "").strip()
    return url or default


def _list(block: Optional[dict], key: str) -> List[str]:
    return list((block or {}).get(key, []) or [])


class ProviderFactory:
    """Builds providers from the declarations of a BotNetworkPolicy."""

    def __init__(self, kube, http: httpx.Client, settings: Settings):
        self.kube = kube
        self.http = http
        self.settings = settings

    def from_spec(self, namespace: str, spec: Dict[str, Any]) -> Provider:
        validate_provider(spec)
        kind = spec["name"].strip().lower()

        if kind == "google":
            block = spec.get("google")
            selector = GoogleSelector(scopes=_list(block, "scopes"))
            return StaticHTTPProvider(self.http, _url(block, self.settings.google_endpoint), selector)

        if kind == "aws":
            # no aws block at all means no filtering
            block = spec.get("aws")
            selector = AWSSelector(
                services=_list(block, "services"),
                regions=_list(block, "regions"),
                network_border_groups=_list(block, "networkBorderGroups"),
            )
            return StaticHTTPProvider(self.http, _url(block, self.settings.aws_endpoint), selector)

        if kind == "github":
            block = spec.get("github")
            selector = GitHubSelector(roles=_list(block, "roles"))
            return StaticHTTPProvider(self.http, _url(block, self.settings.github_endpoint), selector)

        if kind == "configmap":
            cfg = spec["configMap"]
            return ConfigMapProvider(
                self.kube,
                namespace=(cfg.get("namespace") or "").strip() or namespace,
                name=cfg["name"],
                key=cfg["key"],
            )

        # jsonendpoint; validate_provider rejects anything else
        cfg = spec["jsonEndpoint"]
        secret_headers = [
            SecretHeaderRef(
                header=ref["name"].strip(),
                secret_name=ref["secretKeyRef"]["name"],
                secret_key=ref["secretKeyRef"]["key"],
            )
            for ref in cfg.get("headerSecretRefs", []) or []
        ]
        conditions = [
            FieldCondition(field=c["field"], values=tuple(c.get("values", []) or []))
            for c in (cfg.get("filter") or {}).get("fieldConditions", []) or []
        ]
        return JSONEndpointProvider(
            http=self.http,
            kube=self.kube,
            namespace=namespace,
            url=cfg["url"],
            field_path=cfg["fieldPath"],
            headers={str(k): str(v) for k, v in (cfg.get("headers") or {}).items()},
            secret_headers=secret_headers,
            filter=JSONFilter(tuple(conditions)) if conditions else None,
        )
