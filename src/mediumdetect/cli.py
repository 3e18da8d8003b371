# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""mediumdetect CLI: check, convert, redirect commands.

Usage:
    python -m mediumdetect.cli check URL [URL ...] [--json] [--threshold N] [--timeout-ms N]
    python -m mediumdetect.cli convert URL
    python -m mediumdetect.cli redirect URL
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import httpx

from . import DetectionResult
from .config import DetectorSettings
from .detector import MediumDetector, convert_to_freedium_url
from .errors import ConfigError

logger = logging.getLogger(__name__)

NOT_MEDIUM_MESSAGE = "This URL doesn't appear to be a Medium article"


def _require_cli_deps() -> None:
    """Check that CLI optional dependencies are installed."""
    try:
        from tabulate import tabulate  # noqa: F401
    except ImportError as e:
        print(
            f"Missing CLI dependency: {e.name}\nInstall with: pip install freedium-detect[cli]",
            file=sys.stderr,
        )
        sys.exit(1)


def _load_settings(args: argparse.Namespace) -> DetectorSettings:
    try:
        return DetectorSettings.from_env(
            threshold=getattr(args, "threshold", None),
            fetch_timeout_ms=getattr(args, "timeout_ms", None),
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


async def _explain_all(settings: DetectorSettings, urls: list[str]) -> list[DetectionResult]:
    """Classify *urls* concurrently over one shared client."""
    async with httpx.AsyncClient(headers={"User-Agent": settings.user_agent}) as client:
        detector = MediumDetector.from_settings(settings, client=client)
        return list(await asyncio.gather(*(detector.explain(u) for u in urls)))


def _render_table(urls: list[str], results: list[DetectionResult], mirror_base: str) -> str:
    from tabulate import tabulate

    rows = []
    for url, res in zip(urls, results, strict=True):
        rows.append(
            [
                url,
                "yes" if res.is_medium_likely else "no",
                res.score,
                "; ".join(res.reasons) or "-",
                convert_to_freedium_url(url, mirror_base) if res.is_medium_likely else "",
            ]
        )
    return tabulate(rows, headers=["URL", "Medium", "Score", "Reasons", "Mirror"])


def cmd_check(args: argparse.Namespace) -> None:
    """Classify one or more URLs and print verdict, score and reasons."""
    if not args.json:
        _require_cli_deps()
    settings = _load_settings(args)
    results = asyncio.run(_explain_all(settings, args.urls))

    if args.json:
        payload = []
        for url, res in zip(args.urls, results, strict=True):
            item = {"url": url, **res.to_dict()}
            if res.is_medium_likely:
                item["mirror_url"] = convert_to_freedium_url(url, settings.mirror_base)
            payload.append(item)
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(_render_table(args.urls, results, settings.mirror_base))


def cmd_convert(args: argparse.Namespace) -> None:
    """Print the mirror URL without any detection."""
    settings = _load_settings(args)
    print(convert_to_freedium_url(args.url, settings.mirror_base))


def cmd_redirect(args: argparse.Namespace) -> None:
    """Print the mirror URL if *url* is Medium, else fail with exit code 1."""
    settings = _load_settings(args)
    (result,) = asyncio.run(_explain_all(settings, [args.url]))
    if not result.is_medium_likely:
        print(f"{NOT_MEDIUM_MESSAGE}: {args.url}", file=sys.stderr)
        sys.exit(1)
    print(convert_to_freedium_url(args.url, settings.mirror_base))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediumdetect",
        description="Detect Medium-hosted pages and build Freedium mirror links",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")
    subparsers = parser.add_subparsers(dest="command")

    p_check = subparsers.add_parser("check", help="Classify URLs (table or JSON)")
    p_check.add_argument("urls", nargs="+", metavar="URL")
    p_check.add_argument("--json", action="store_true", help="JSON output")
    p_check.add_argument("--threshold", type=int, default=None, help="Decision threshold (default 8)")
    p_check.add_argument("--timeout-ms", type=int, default=None, help="Probe timeout in ms (default 3000)")

    p_convert = subparsers.add_parser("convert", help="Print the Freedium mirror URL")
    p_convert.add_argument("url", metavar="URL")

    p_redirect = subparsers.add_parser("redirect", help="Mirror URL if Medium, else exit 1")
    p_redirect.add_argument("url", metavar="URL")
    p_redirect.add_argument("--threshold", type=int, default=None)
    p_redirect.add_argument("--timeout-ms", type=int, default=None)

    return parser


_COMMANDS = {
    "check": cmd_check,
    "convert": cmd_convert,
    "redirect": cmd_redirect,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    from .logging_config import configure as configure_logging

    configure_logging(json_output=args.json_logs, level="DEBUG" if args.verbose else "WARNING")
    logger.debug("Running command: %s", args.command)

    _COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
