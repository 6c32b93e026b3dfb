#!/usr/bin/env python3
"""
Standing-order scheduler host.

Loads configuration and the member roster, then either runs a single due
pass and prints its JSON summary (--once), or starts the daily scheduler
(with startup catch-up) and blocks until interrupted.

Usage:
  python scripts/run_standing_orders.py --members roster.yaml --once
  python scripts/run_standing_orders.py --config ledger.yaml --members roster.yaml
  python scripts/run_standing_orders.py --members roster.yaml --create-tables --once
"""

from __future__ import annotations

import argparse
import json
import os
import signal
import sys
import threading
from pathlib import Path

# Allow importing the packages when run as a script (no PYTHONPATH required).
_script_dir = os.path.dirname(os.path.abspath(__file__))
_root = os.path.dirname(_script_dir)
if _root not in sys.path:
    sys.path.insert(0, _root)

from household_batch.domain.types import PassTrigger  # noqa: E402
from household_batch.orchestrator import BatchOrchestrator  # noqa: E402
from household_config import get_active_config  # noqa: E402
from household_config.loader import load_member_directory  # noqa: E402
from household_kernel.logging_config import configure_logging, get_logger  # noqa: E402

logger = get_logger("scripts.run_standing_orders")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run due standing orders.")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument(
        "--members",
        type=Path,
        required=True,
        help="YAML roster of households and members",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one due pass, print its summary and exit",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = get_active_config(args.config)
    configure_logging(level=config.logging.level)

    directory = load_member_directory(args.members)
    orchestrator = BatchOrchestrator.from_config(
        config, directory, create_schema=args.create_tables,
    )

    if args.once:
        result = orchestrator.create_processor().run_due_pass(PassTrigger.MANUAL)
        print(json.dumps(result.to_summary(), indent=2))
        return 1 if result.failed else 0

    scheduler = orchestrator.create_scheduler()
    stopped = threading.Event()

    def _handle_signal(signum, frame):
        logger.info("shutdown_requested", extra={"signal": signum})
        stopped.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    try:
        stopped.wait()
    finally:
        scheduler.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
