# config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from kubernetes import config as kube_config

from providers.static import (
    DEFAULT_AWS_ENDPOINT,
    DEFAULT_GITHUB_ENDPOINT,
    DEFAULT_GOOGLE_ENDPOINT,
)

logger = logging.getLogger("controller")

DEFAULT_SYNC_SECONDS = 3600.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_LOOP_SECONDS = 5


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at start-up and passed explicitly."""

    namespace: str = ""  # empty = all namespaces
    loop_seconds: int = DEFAULT_LOOP_SECONDS
    default_sync_seconds: float = DEFAULT_SYNC_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    google_endpoint: str = DEFAULT_GOOGLE_ENDPOINT
    aws_endpoint: str = DEFAULT_AWS_ENDPOINT
    github_endpoint: str = DEFAULT_GITHUB_ENDPOINT
    log_level: str = "INFO"


def _endpoint(env: Mapping[str, str], key: str, default: str) -> str:
    # blank overrides are ignored
    return (env.get(key) or "").strip() or default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    return Settings(
        namespace=env.get("NAMESPACE", "").strip(),
        loop_seconds=int(env.get("LOOP_SECONDS", str(DEFAULT_LOOP_SECONDS))),
        default_sync_seconds=float(env.get("DEFAULT_SYNC_SECONDS", str(DEFAULT_SYNC_SECONDS))),
        http_timeout_seconds=float(
            env.get("HTTP_TIMEOUT_SECONDS", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        ),
        google_endpoint=_endpoint(env, "GOOGLE_ENDPOINT", DEFAULT_GOOGLE_ENDPOINT),
        aws_endpoint=_endpoint(env, "AWS_ENDPOINT", DEFAULT_AWS_ENDPOINT),
        github_endpoint=_endpoint(env, "GITHUB_ENDPOINT", DEFAULT_GITHUB_ENDPOINT),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


def load_kube_config() -> None:
    try:
        kube_config.load_incluster_config()
        logger.info("using in-cluster config")
    except kube_config.ConfigException:
        kube_config.load_kube_config()
        logger.info("using kubeconfig (local)")
