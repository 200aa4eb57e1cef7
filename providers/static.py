# providers/static.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

from errors import ProviderError
from providers.base import Provider, sanitize

DEFAULT_GOOGLE_ENDPOINT = "https://www.gstatic.com/ipranges/goog.json"
DEFAULT_AWS_ENDPOINT = "https://ip-ranges.amazonaws.com/ip-ranges.json"
DEFAULT_GITHUB_ENDPOINT = "https://api.github.com/meta"

Selector = Callable[[Dict[str, Any]], List[str]]


def get_json(
    http: httpx.Client,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """GET ``url`` and decode the body. Every failure surfaces as ProviderError."""
    kwargs: Dict[str, Any] = {"headers": headers}
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        resp = http.get(url, **kwargs)
    except httpx.TimeoutException as e:
        raise ProviderError(f"request to {url} timed out") from e
    except httpx.HTTPError as e:
        raise ProviderError(f"request to {url} failed: {e}") from e

    if not resp.is_success:
        raise ProviderError(f"unexpected status: {resp.status_code} {resp.reason_phrase}")

    try:
        return resp.json()
    except ValueError as e:
        raise ProviderError(f"decoding response from {url}: {e}") from e


class StaticHTTPProvider(Provider):
    """One GET against a fixed URL, CIDRs picked out by a source-specific selector."""

    def __init__(self, http: httpx.Client, url: str, selector: Selector):
        self.http = http
        self.url = url
        self.selector = selector

    def fetch(self, timeout: Optional[float] = None) -> List[str]:
        payload = get_json(self.http, self.url, timeout=timeout)
        if not isinstance(payload, dict):
            raise ProviderError(f"expected a JSON object from {self.url}")
        return sanitize(self.selector(payload))

    def __repr__(self) -> str:
        return f"StaticHTTPProvider(url={self.url!r}, selector={self.selector!r})"
