"""Poll the device log queue and reconcile scans into attendance sessions.

Usage: python scripts/drain_iot_logs.py [--once] [--interval SECONDS]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from field_attendance.container import build_container
from field_attendance.core.exceptions import StoreUnavailableError

logger = logging.getLogger("drain_iot_logs")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--once", action="store_true", help="drain once and exit")
    parser.add_argument("--interval", type=float, default=5.0, help="seconds between polls")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    container = build_container(db_config=dict(settings.DB_CONFIG))
    limit = int(getattr(settings, "IOT_DRAIN_LIMIT", 100))

    while True:
        try:
            report = container.event_processor.drain(limit)
            if report.processed or report.malformed:
                logger.info("processed=%d malformed=%d outcomes=%s", report.processed, report.malformed, report.outcomes)
        except StoreUnavailableError as exc:
            logger.warning("store unavailable, retrying next poll: %s", exc)
        if args.once:
            break
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
