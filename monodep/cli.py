"""CLI entrypoint for monodep."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .logging import configure_logging
from .orchestrator import Orchestrator, RunOptions
from .reporting import render_compact, render_json, render_text
from .workspace import WorkspaceError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monodep",
        description="Check dependency declarations across a JavaScript/TypeScript monorepo.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Path to the workspace root (defaults to current directory).",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--compact",
        action="store_true",
        help="Print one line per issue, suitable for CI logs.",
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Print the full report as JSON.",
    )
    parser.add_argument(
        "--only-extras",
        action="store_true",
        help="Skip unused and missing dependency reporting.",
    )
    parser.add_argument(
        "--no-outdated",
        action="store_true",
        help="Do not query the registry for newer versions.",
    )
    parser.add_argument(
        "--check-installed-peers",
        action="store_true",
        help="Validate peer requirements of installed dependencies.",
    )
    parser.add_argument(
        "--ownership-report",
        action="store_true",
        help="Print dependency ownership suggestions (informational).",
    )
    parser.add_argument(
        "--ownership-policy",
        choices=("root-shared", "workspace-explicit"),
        default=None,
        help="Placement policy used by the ownership report.",
    )
    parser.add_argument(
        "--dynamic-imports",
        choices=("off", "warn", "strict"),
        default=None,
        help="How to treat dynamic imports with non-literal targets.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def _options_from_args(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        only_extras=bool(args.only_extras),
        check_outdated=False if args.no_outdated else None,
        check_installed_peers=True if args.check_installed_peers else None,
        ownership_report=True if args.ownership_report else None,
        ownership_policy=args.ownership_policy,
        dynamic_import_policy=args.dynamic_imports,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the analysis and return the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()
    try:
        report = orchestrator.run(args.directory, _options_from_args(args))
    except WorkspaceError as exc:
        print(f"monodep: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(render_json(report))
    elif args.compact:
        print(render_compact(report))
    else:
        print(render_text(report))
    return report.exit_code


def run() -> None:
    sys.exit(main())


__all__ = ["main", "run"]
