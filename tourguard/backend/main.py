from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import NoReturn

import uvicorn

from .config import Settings, settings
from .engine import DetectorThresholds, LogAnalyzer
from .reports import daily_security_check, weekly_security_report, write_report
from .security import SecurityEventContext, SecurityLogError
from .storage import create_store

logger = logging.getLogger("tourguard.main")


def build_context(cfg: Settings) -> tuple[SecurityEventContext, LogAnalyzer]:
    """Wire store → logger → analyzer once, at process start."""
    context = SecurityEventContext()
    sec_log = context.initialize_from_settings(create_store(cfg.REDIS_URL), cfg)
    analyzer = LogAnalyzer(
        sec_log,
        DetectorThresholds.from_settings(cfg),
        detection_window_ms=cfg.detection_window_ms,
        insights_window_ms=cfg.insights_window_ms,
    )
    return context, analyzer


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def run_daily_check(cfg: Settings, as_json: bool) -> int:
    context, analyzer = build_context(cfg)
    try:
        report = await daily_security_check(
            context.get_security_logger(), analyzer, cfg.detection_window_ms
        )
    finally:
        await context.store.close()
    if as_json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print(report.render_text())
    return 0


async def run_weekly_report(cfg: Settings, out_dir: str) -> int:
    context, analyzer = build_context(cfg)
    try:
        report = await weekly_security_report(context.get_security_logger(), analyzer)
    finally:
        await context.store.close()
    path = write_report(report, out_dir)
    summary = report.summary
    print(
        f"Weekly security report: {summary['totalEvents']} events, "
        f"{summary['criticalEvents']} critical, "
        f"{summary['suspiciousLogins']} login / {summary['suspiciousPayments']} payment / "
        f"{summary['rateLimitViolations']} rate-limit findings"
    )
    print(f"Saved to {path}")
    return 0


def run_server(cfg: Settings) -> int:
    from .api.main import create_app

    context, analyzer = build_context(cfg)
    app = create_app(context, analyzer)
    uvicorn.run(app, host=cfg.API_HOST, port=cfg.API_PORT, log_level=cfg.LOG_LEVEL.lower())
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TourGuard security event log")
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    daily = sub.add_parser("daily-check", help="last-24h critical events and detector findings")
    daily.add_argument("--json", action="store_true", help="print the report as JSON")

    weekly = sub.add_parser("weekly-report", help="write the 7-day security report")
    weekly.add_argument("--out", default="reports", help="output directory")

    sub.add_parser("serve", help="run the read-only security API")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> NoReturn:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        if args.command == "daily-check":
            code = asyncio.run(run_daily_check(settings, args.json))
        elif args.command == "weekly-report":
            code = asyncio.run(run_weekly_report(settings, args.out))
        else:
            code = run_server(settings)
    except SecurityLogError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
