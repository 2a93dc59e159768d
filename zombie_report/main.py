"""Command line entry points for the zombie report."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional, Sequence

import uvicorn

from .config import load_settings
from .errors import ZombieReportError
from .service import MODES, create_service

logger = logging.getLogger("zombie_report")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zombie-report",
        description="Report channel members with no pull request activity.",
    )
    parser.add_argument("--mode", default="daily", help="daily, weekly, or deep-scan")
    parser.add_argument("--config", default="config.yaml", help="path to config file")
    parser.add_argument("--days", type=int, default=0, help="override the number of days to scan")
    parser.add_argument("--by-day", action="store_true", help="group each member's links by day")
    parser.add_argument(
        "--dry-run", action="store_true", help="print the report instead of sending a DM"
    )
    parser.add_argument("--env-file", default=None, help="dotenv file with token overrides")
    return parser


async def run_report(args: argparse.Namespace) -> List[str]:
    settings = load_settings(args.config, args.env_file)
    service = create_service(settings)
    try:
        messages = await service.render(args.mode, args.days, args.by_day)
        if not args.dry_run:
            await service.send_report(messages)
    finally:
        await service.close()
    return messages


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.mode not in MODES:
        print(
            f"invalid mode {args.mode!r}: must be daily, weekly, or deep-scan",
            file=sys.stderr,
        )
        return 1

    try:
        messages = asyncio.run(run_report(args))
    except ZombieReportError as exc:
        logger.error("%s", exc)
        return 1

    if args.dry_run:
        print("\n".join(messages), end="")
    else:
        print("Report sent.")
    return 0


def serve() -> None:
    """Run the HTTP API via uvicorn."""

    from .api import create_app

    configure_logging()
    settings = load_settings(
        os.getenv("ZOMBIE_REPORT_CONFIG", "config.yaml"), os.getenv("ZOMBIE_REPORT_ENV")
    )
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def main() -> None:  # pragma: no cover
    sys.exit(run())


if __name__ == "__main__":  # pragma: no cover
    main()
