"""sitefreeze CLI: sitefreeze generate / sitefreeze routes.

Entry point for the ``sitefreeze`` command-line interface.  Human-facing
output goes to stderr; the machine-readable result is JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the sitefreeze CLI."""
    parser = argparse.ArgumentParser(
        prog="sitefreeze",
        description="Publish a static snapshot of a live blog.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sitefreeze generate
    generate_parser = subparsers.add_parser(
        "generate",
        help="Fetch every route and publish the snapshot",
    )
    generate_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    generate_parser.add_argument("--base-url", default=None, help="URL of the live site")
    generate_parser.add_argument("--backend", default=None, help="Backend section to publish through")
    generate_parser.add_argument(
        "--workers", type=int, default=None, help="Concurrent fetch+write operations",
    )
    generate_parser.add_argument("--content", default=None, help="Content export file")
    generate_parser.add_argument(
        "--show-log", action="store_true", help="Print the run's event log to stderr",
    )

    # sitefreeze routes
    routes_parser = subparsers.add_parser(
        "routes",
        help="List every route and target path without publishing",
    )
    routes_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    routes_parser.add_argument("--base-url", default=None, help="URL of the live site")
    routes_parser.add_argument("--content", default=None, help="Content export file")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from sitefreeze import __version__

    return __version__


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2))


def _generate(args: argparse.Namespace) -> int:
    from sitefreeze.app import generate, print_event_log

    result = generate(
        root=args.root,
        base_url=args.base_url,
        backend=args.backend,
        max_workers=args.workers,
        content_file=args.content,
    )
    if args.show_log:
        print_event_log(result.log)
    _emit(result.summary())
    return 0 if result.ok else 1


def _routes(args: argparse.Namespace) -> int:
    from sitefreeze._errors import FreezeError
    from sitefreeze.app import enumerate_site

    try:
        routes = enumerate_site(
            root=args.root,
            base_url=args.base_url,
            content_file=args.content,
        )
    except FreezeError as exc:
        _emit(exc.to_dict())
        return 1

    _emit([
        {"url": m.url, "target_path": m.target_path, "kind": m.kind}
        for m in routes.mappings
    ])
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "generate":
        sys.exit(_generate(args))
    elif args.command == "routes":
        sys.exit(_routes(args))


if __name__ == "__main__":
    main()
