#!/usr/bin/env python3
"""
Run one eCFR synchronization pass.

Usage:
    python -m ecfranalyzer

Both the cold-start hook and the daily scheduler invoke this entry point; the
pass is idempotent per calendar day.
"""

import asyncio
import logging

from dotenv import load_dotenv

from .ingestion import run_sync_pass
from .utils import setup_logging


def main() -> int:
    load_dotenv()
    setup_logging()

    report = asyncio.run(run_sync_pass())
    logging.getLogger("ecfranalyzer").info(
        f"Snapshot {report.snapshot_date}: created={report.snapshot_created}, "
        f"fallback={report.used_fallback}"
    )
    return 1 if report.persistence_failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
