from __future__ import annotations

import argparse
import logging
import time

from estatedesk.core.config import settings
from estatedesk.core.logging import configure_logging
from estatedesk.db.session import session_scope
from estatedesk.services.sweeps import SWEEPS, SweepResult, run_all, run_sweep

logger = logging.getLogger("sweep_worker")


def run_once(names: list[str] | None = None) -> list[SweepResult]:
    with session_scope() as session:
        if not names:
            return run_all(session)
        return [run_sweep(session, name) for name in names]


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run scheduled back-office sweeps.")
    parser.add_argument("--once", action="store_true", help="Run once and exit.")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.SWEEP_INTERVAL_SECONDS,
        help="Seconds between runs.",
    )
    parser.add_argument(
        "--sweep",
        action="append",
        choices=sorted(SWEEPS),
        help="Run only the named sweep (repeatable).",
    )
    args = parser.parse_args(argv)

    configure_logging(level=settings.LOG_LEVEL)

    while True:
        results = run_once(args.sweep)
        failed = [result.name for result in results if not result.ok]
        if failed:
            logger.warning("sweep_run_had_failures: %s", ", ".join(failed))
        if args.once:
            break
        time.sleep(max(args.interval, 1))


if __name__ == "__main__":
    main()
