"""CLI entry point: python -m forumparser {extract,serve} [options]"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

import yaml

from forumparser.profiles import DEFAULT_PROFILE, ForumProfile, load_profile
from forumparser.query import DEFAULT_TIMEOUT, FetchError, InvalidURLError, extract, fetch

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forumparser",
        description=(
            "Extract topic, author, avatar and timestamp from a discussion-forum page.\n"
            "Heuristic selector cascades; unresolved fields come back blank."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    parser.add_argument("--profile", default=None, metavar="YAML",
                        help="Forum profiles file (default: built-in profile)")
    sub = parser.add_subparsers(dest="command", required=True)

    ext = sub.add_parser("extract", help="Fetch or read one page and print its record as JSON")
    ext.add_argument("--url", default="", metavar="URL",
                     help="Discussion page URL (fetched unless --file is given)")
    ext.add_argument("--file", default=None, metavar="HTML",
                     help="Read HTML from a local file instead of fetching")
    ext.add_argument("--origin", default=None, metavar="HOST",
                     help="Host used to absolutize relative links (default: profile origin)")
    ext.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, metavar="SECONDS",
                     help=f"Overall fetch deadline (default: {DEFAULT_TIMEOUT})")
    ext.add_argument("--no-validate", action="store_true", default=False,
                     help="Fetch URLs outside the forum's discussion path")

    srv = sub.add_parser("serve", help="Run the HTTP API")
    srv.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    srv.add_argument("--port", type=int, default=None,
                     help="Listen port (default: $PORT or 3000)")
    return parser


def _load_profile(args: argparse.Namespace) -> ForumProfile:
    if not args.profile:
        return DEFAULT_PROFILE
    return load_profile(args.profile, getattr(args, "url", "") or "")


def _run_extract(args: argparse.Namespace, profile: ForumProfile) -> int:
    if not args.url and not args.file:
        print("ERROR: extract needs --url or --file", file=sys.stderr)
        return 1

    if args.file:
        try:
            html = Path(args.file).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            print(f"ERROR: Could not read {args.file}: {exc}", file=sys.stderr)
            return 1
        record = extract(html, url=args.url, origin=args.origin, profile=profile)
    else:
        if args.origin:
            profile = ForumProfile(**{**profile.model_dump(), "origin": args.origin})
        try:
            record = fetch(
                args.url,
                profile=profile,
                timeout=args.timeout,
                validate=not args.no_validate,
            )
        except (InvalidURLError, FetchError) as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    print(json.dumps(record.to_payload(), ensure_ascii=False, indent=2))
    return 0


def _run_serve(args: argparse.Namespace, profile: ForumProfile) -> int:
    try:
        import uvicorn
    except ImportError as exc:
        print(f"ERROR: Could not import uvicorn: {exc}", file=sys.stderr)
        print("Run: pip install -e .", file=sys.stderr)
        return 1

    from forumparser.server import create_app
    from forumparser.settings import ServiceSettings

    settings = ServiceSettings.from_env()
    if args.profile:
        settings = dataclasses.replace(settings, profile=profile)
    port = args.port or settings.port

    logger.info("Serving forumparser on port %d", port)
    uvicorn.run(create_app(settings), host=args.host, port=port, log_level=args.log_level.lower())
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        profile = _load_profile(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"ERROR: Could not load profile {args.profile}: {exc}", file=sys.stderr)
        return 1

    if args.command == "serve":
        return _run_serve(args, profile)
    return _run_extract(args, profile)


if __name__ == "__main__":
    sys.exit(main())
