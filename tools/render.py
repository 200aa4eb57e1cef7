#!/usr/bin/env python3
"""tools/render.py

Render the NetworkPolicy the controller would write for one BotNetworkPolicy as YAML.

Usage examples:
  python3 tools/render.py default web > /tmp/web-allow-bots.yaml

  # Or review it against the live object:
  python3 tools/render.py default web | kubectl diff -f -

Notes:
- This does NOT apply anything.
- The owner reference is only added by the controller at creation time, so it is absent here.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_settings  # noqa: E402
from tools.plan import build_reconciler  # noqa: E402


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print("usage: render.py <namespace> <name>", file=sys.stderr)
        return 2

    settings = load_settings()
    logging.basicConfig(level=logging.WARNING, format="[%(name)s] %(message)s")

    reconciler, http = build_reconciler(settings)
    try:
        plan = reconciler.plan(argv[0], argv[1])
    finally:
        http.close()

    if plan.get("errors"):
        for e in plan["errors"]:
            print(f"[render] error: {e}", file=sys.stderr)
        return 1

    try:
        yaml.safe_dump(plan["desired"], sys.stdout, sort_keys=False)
    except BrokenPipeError:
        # Common when piping to `head`; exit cleanly
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
