"""Periodic auto-cancellation of unpaid orders.

Usage:
    python src/sweeper.py                       # Sweep every AUTO_CANCEL_INTERVAL_SECONDS
    python src/sweeper.py --once                # Single sweep, then exit
    python src/sweeper.py --threshold-hours 48
"""

import argparse
import os
import time

import structlog
from ordering.domain import ordering
from ordering.order.sweeper import DEFAULT_THRESHOLD_HOURS, AutoCancellationSweeper
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 3600


def run(interval: float, threshold_hours: float, once: bool = False) -> int:
    """Sweep until interrupted (or once). Returns the total number of cancelled orders."""
    ordering.init()
    sweeper = AutoCancellationSweeper()
    total = 0

    while True:
        with ordering.domain_context():
            total += sweeper.sweep(threshold_hours)
        if once:
            return total
        time.sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="Cancel orders left unpaid past a threshold")
    parser.add_argument(
        "--interval",
        type=float,
        default=float(os.environ.get("AUTO_CANCEL_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS)),
        help="Seconds between sweeps",
    )
    parser.add_argument(
        "--threshold-hours",
        type=float,
        default=float(os.environ.get("AUTO_CANCEL_THRESHOLD_HOURS", DEFAULT_THRESHOLD_HOURS)),
        help="Cancel unpaid orders older than this many hours",
    )
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    args = parser.parse_args()

    configure_logging()
    logger.info("Starting auto-cancellation sweeper", interval=args.interval, threshold_hours=args.threshold_hours)
    try:
        run(args.interval, args.threshold_hours, once=args.once)
    except KeyboardInterrupt:
        logger.info("Sweeper stopped")


if __name__ == "__main__":
    main()
