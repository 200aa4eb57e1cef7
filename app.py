# app.py
from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Dict, Optional, Tuple

import httpx

import botpolicy
from config import Settings, load_kube_config, load_settings
from k8s import KubeClient
from providers.factory import ProviderFactory
from reconcile import Reconciler

logger = logging.getLogger("controller")

USER_AGENT = "botnetworkpolicy-controller"
BACKOFF_BASE_SECONDS = 5.0
BACKOFF_MAX_SECONDS = 300.0

Key = Tuple[str, str]  # (namespace, name)


class Schedule:
    """When each resource is due next.

    A resource is (re)run when it first appears, when its generation changes,
    when its requeue delay elapses, or after an error backoff.
    """

    def __init__(self) -> None:
        self.due: Dict[Key, Optional[float]] = {}
        self.generation: Dict[Key, Optional[int]] = {}
        self.failures: Dict[Key, int] = {}

    def observe(self, key: Key, generation: Optional[int], now: float) -> None:
        if key not in self.generation or self.generation[key] != generation:
            self.generation[key] = generation
            self.due[key] = now

    def forget_missing(self, seen: set) -> None:
        for key in [k for k in self.generation if k not in seen]:
            self.generation.pop(key, None)
            self.due.pop(key, None)
            self.failures.pop(key, None)

    def is_due(self, key: Key, now: float) -> bool:
        due = self.due.get(key)
        return due is not None and due <= now

    def succeeded(self, key: Key, requeue_after: Optional[float], now: float) -> None:
        self.failures.pop(key, None)
        self.due[key] = None if requeue_after is None else now + requeue_after

    def failed(self, key: Key, now: float) -> float:
        n = self.failures.get(key, 0) + 1
        self.failures[key] = n
        delay = min(BACKOFF_BASE_SECONDS * (2 ** (n - 1)), BACKOFF_MAX_SECONDS)
        self.due[key] = now + delay
        return delay


def run_once(kube: KubeClient, reconciler: Reconciler, schedule: Schedule, settings: Settings) -> None:
    now = time.monotonic()
    seen = set()
    for res in kube.list_botpolicies(settings.namespace):
        key = (botpolicy.namespace_of(res), botpolicy.name_of(res))
        seen.add(key)
        schedule.observe(key, (res.get("metadata", {}) or {}).get("generation"), now)
    schedule.forget_missing(seen)

    for key in sorted(seen):
        if not schedule.is_due(key, now):
            continue
        try:
            result = reconciler.reconcile(*key)
        except Exception as e:
            delay = schedule.failed(key, time.monotonic())
            logger.error("reconcile %s/%s failed: %s (retry in %.0fs)", key[0], key[1], e, delay)
            continue
        schedule.succeeded(key, result.requeue_after, time.monotonic())


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="[%(name)s] %(message)s",
    )
    load_kube_config()

    kube = KubeClient()
    http = httpx.Client(
        timeout=settings.http_timeout_seconds,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )
    reconciler = Reconciler(kube, ProviderFactory(kube, http, settings), settings)
    schedule = Schedule()

    stop_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())

    scope = settings.namespace or "all namespaces"
    logger.info("watching BotNetworkPolicies in %s every %ss", scope, settings.loop_seconds)
    try:
        while not stop_event.is_set():
            try:
                run_once(kube, reconciler, schedule, settings)
            except Exception as e:
                logger.error("listing BotNetworkPolicies failed: %s", e)
            stop_event.wait(settings.loop_seconds)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("shutting down")
        http.close()


if __name__ == "__main__":
    main()
