#!/usr/bin/env python3
"""Plan-only runner: prints what the controller would do for one BotNetworkPolicy.

Usage:
  python3 tools/plan.py <namespace> <name>

Notes:
- Uses in-cluster config when available, else your local kubeconfig (same as app.py).
- Providers ARE queried (read-only); no NetworkPolicy, status or event is written.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import httpx

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_kube_config, load_settings  # noqa: E402
from k8s import KubeClient  # noqa: E402
from providers.factory import ProviderFactory  # noqa: E402
from reconcile import Reconciler, print_plan  # noqa: E402


def build_reconciler(settings) -> tuple[Reconciler, httpx.Client]:
    load_kube_config()
    kube = KubeClient()
    http = httpx.Client(timeout=settings.http_timeout_seconds, follow_redirects=True)
    return Reconciler(kube, ProviderFactory(kube, http, settings), settings), http


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print("usage: plan.py <namespace> <name>", file=sys.stderr)
        return 2

    settings = load_settings()
    logging.basicConfig(level=logging.WARNING, format="[%(name)s] %(message)s")

    reconciler, http = build_reconciler(settings)
    try:
        plan = reconciler.plan(argv[0], argv[1])
    finally:
        http.close()

    print_plan(plan)
    return 1 if plan.get("errors") or plan.get("action") == "conflict" else 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
