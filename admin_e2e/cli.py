"""Command-line interface for the admin E2E driver."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .browser import BrowserConfig
from .io_utils import generate_run_id, prepare_run_directories, write_json
from .logging_utils import build_logger
from .scenario import (
    DEFAULT_ADMIN_PATH,
    DEFAULT_BASE_URL,
    DEFAULT_LIGA_NAME,
    DEFAULT_LISTING_PATH,
    Credentials,
    EventDraft,
    ScenarioConfig,
    ScenarioFailed,
    Timeouts,
    run_event_scenario,
)

DEFAULT_EMAIL = "admin@example.hu"
DEFAULT_PASSWORD = "Admin123$"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Drive the admin panel to create an event and verify it is listed"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run", help="Log in, create an event and check the listing page"
    )
    run_parser.add_argument("--run-id", dest="run_id", help="Optional run identifier")
    run_parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    run_parser.add_argument(
        "--runs-dir",
        type=Path,
        default=None,
        help="Directory that receives run artifacts (default: ./runs)",
    )
    run_parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Site root URL")
    run_parser.add_argument(
        "--admin-path", default=DEFAULT_ADMIN_PATH, help="Path of the admin login page"
    )
    run_parser.add_argument(
        "--listing-path",
        default=DEFAULT_LISTING_PATH,
        help="Path of the public page that lists events",
    )
    run_parser.add_argument("--email", default=DEFAULT_EMAIL, help="Admin email")
    run_parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Admin password")
    run_parser.add_argument("--liga", default=DEFAULT_LIGA_NAME, help="Event liga name")
    run_parser.add_argument("--round", default="1", help="Event round")
    run_parser.add_argument("--status", default="1", help="Event status option value")
    run_parser.add_argument(
        "--element-timeout-ms",
        type=int,
        default=Timeouts().element_ms,
        help="How long to poll for a required element",
    )
    run_parser.add_argument("--headed", action="store_true", help="Show the browser window")
    run_parser.add_argument(
        "--slow-mo", type=float, default=0, help="Delay (ms) between browser operations"
    )
    run_parser.add_argument(
        "--no-screenshots", action="store_true", help="Skip per-step screenshots"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "run":
        parser.error(f"Unknown command: {args.command}")

    run_id = args.run_id or generate_run_id()
    run_paths = prepare_run_directories(run_id, "event_scenario", root=args.runs_dir)
    logger = build_logger(run_paths, verbose=args.verbose)

    config = ScenarioConfig(
        credentials=Credentials(email=args.email, password=args.password),
        draft=EventDraft.for_today(args.liga, round=args.round, status=args.status),
        base_url=args.base_url,
        admin_path=args.admin_path,
        listing_path=args.listing_path,
        timeouts=Timeouts(element_ms=args.element_timeout_ms),
        screenshots=not args.no_screenshots,
    )
    browser_config = BrowserConfig(headless=not args.headed, slow_mo=args.slow_mo)

    exit_code = 0
    try:
        result = run_event_scenario(
            config, logger=logger, run_paths=run_paths, browser_config=browser_config
        )
    except ScenarioFailed as exc:
        result = exc.summary
        exit_code = 1

    write_json(run_paths.build_path("summary.json"), result)
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
