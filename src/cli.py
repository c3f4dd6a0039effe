"""Command-line interface for archmap."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from analysis import analyze_architecture
from analysis.utils import dumps_json
from analysis.write import write_analysis
from rules.config import (
    SUPPORTED_VISUALIZATION_FORMATS,
    AnalyzerConfig,
    ConfigError,
    load_config,
)
from scan.files import NotFoundError
from verify.verify import verify_determinism

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root (default: .)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for info, -vv for debug)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="archmap")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze the dependency architecture of a repository"
    )
    _add_common_paths(analyze_parser)
    analyze_parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Glob of files to include (repeatable)",
    )
    analyze_parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Glob of files to exclude (repeatable)",
    )
    analyze_parser.add_argument(
        "--depth",
        choices=("file", "directory"),
        default=None,
        help="Graph granularity (default: config or file)",
    )
    analyze_parser.add_argument(
        "--format",
        dest="visualization_format",
        default=None,
        help=(
            "Visualization format: "
            f"{', '.join(SUPPORTED_VISUALIZATION_FORMATS)} (default: config or d3)"
        ),
    )
    analyze_parser.add_argument(
        "--no-visualization",
        action="store_true",
        help="Skip rendering the dependency graph",
    )
    analyze_parser.add_argument(
        "--api-surface",
        action="store_true",
        help="Analyze public API exposure and encapsulation issues",
    )
    analyze_parser.add_argument(
        "--include-hidden",
        action="store_true",
        help="Analyze files inside dot-prefixed paths",
    )
    analyze_parser.add_argument(
        "--include-external",
        action="store_true",
        help="Keep third-party packages as graph nodes",
    )
    analyze_parser.add_argument(
        "--out-dir",
        default=None,
        help="Write architecture.json, summary.json and graph files here",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify that repeated analyses agree"
    )
    _add_common_paths(verify_parser)

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _apply_overrides(config: AnalyzerConfig, args: argparse.Namespace) -> AnalyzerConfig:
    update: dict[str, object] = {}
    if args.include:
        update["include"] = args.include
    if args.exclude:
        update["exclude"] = [*config.exclude, *args.exclude]
    if args.depth is not None:
        update["analysis_depth"] = args.depth
    if args.visualization_format is not None:
        update["visualization_format"] = args.visualization_format
    if args.no_visualization:
        update["generate_visualization"] = False
    if args.api_surface:
        update["analyze_api_surface"] = True
    if args.include_hidden:
        update["include_hidden"] = True
    if args.include_external:
        update["include_external"] = True
    return config.model_copy(update=update)


def _handle_analyze(root: Path, args: argparse.Namespace) -> int:
    config = _apply_overrides(load_config(root), args)
    result, summary = analyze_architecture(root, config)

    if args.out_dir is not None:
        out_dir = Path(args.out_dir).expanduser().resolve()
        for path in write_analysis(result, summary, out_dir):
            logger.info("Wrote %s", path)

    sys.stdout.write(dumps_json(summary).decode("utf-8") + "\n")
    return 0


def _handle_verify(root: Path) -> int:
    result = verify_determinism(root=root, config=load_config(root))
    if not result.ok:
        for mismatch in result.mismatches:
            sys.stderr.write(f"mismatch: {mismatch}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()

    try:
        if args.command == "analyze":
            return _handle_analyze(root, args)

        if args.command == "verify":
            return _handle_verify(root)
    except (NotFoundError, ConfigError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
