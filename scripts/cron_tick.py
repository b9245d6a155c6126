"""Periodic trigger for the scheduled jobs.

Every tick calls the absence sweep and the payroll auto-release endpoints, one after
the other, each a full blocking round trip. Both endpoints are safe to call repeatedly.

    CRON_BASE_URL=http://localhost:5000 CRON_TOKEN=... python scripts/cron_tick.py
    python scripts/cron_tick.py --once
"""

from __future__ import annotations

import argparse
import importlib
import logging
import os
import sys
import time
from pathlib import Path

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.payroll_system.payroll_system.common.http import CRON_TOKEN_HEADER
from src.payroll_system.payroll_system.common.log import configure_logging

logger = logging.getLogger("cron_tick")

JOBS = ("/api/cron/auto-mark-absent", "/api/cron/auto-release-payroll")
DEFAULT_INTERVAL_SECONDS = 60


def run_tick(base_url: str, token: str, *, timeout: float = 30) -> dict:
    results = {}
    for path in JOBS:
        try:
            response = requests.post(base_url.rstrip("/") + path, headers={CRON_TOKEN_HEADER: token}, timeout=timeout)
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("%s failed: %s", path, exc)
            results[path] = None
            continue
        if response.status_code != 200:
            logger.warning("%s -> %s %s", path, response.status_code, body.get("error"))
        else:
            logger.info("%s -> %s", path, body.get("message") or body)
        results[path] = body
    return results


def main() -> None:
    settings = importlib.import_module(get_settings_module())

    parser = argparse.ArgumentParser(description="Run the scheduled payroll jobs")
    parser.add_argument("--base-url", default=os.getenv("CRON_BASE_URL", "http://localhost:5000"))
    parser.add_argument("--token", default=os.getenv("CRON_TOKEN", getattr(settings, "CRON_TOKEN", "")))
    parser.add_argument("--interval", type=int, default=DEFAULT_INTERVAL_SECONDS)
    parser.add_argument("--once", action="store_true", help="run a single tick and exit")
    args = parser.parse_args()

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    if not args.token:
        raise SystemExit("CRON_TOKEN is not set")

    while True:
        run_tick(args.base_url, args.token)
        if args.once:
            return
        time.sleep(max(args.interval, 1))


if __name__ == "__main__":
    main()
