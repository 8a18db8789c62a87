"""
crate-features - Cargo feature manager
Main Entry Point

Without a subcommand this opens the interactive picker; ``prune`` runs the
automated minimization.
"""

import argparse
import sys

from rich.console import Console

from crate_features import __version__
from crate_features.cli.styles import FEATURES_THEME
from crate_features.errors import CrateFeaturesError
from crate_features.utils.config import CleanLevel, use_config_file
from crate_features.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crate-features",
        description="Toggle and prune the features of a Cargo project's dependencies",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-d",
        "--dependency",
        default=None,
        metavar="NAME",
        help="Open the picker on this dependency",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="Settings file (default: .crate-features.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override logging.level from the settings",
    )

    subparsers = parser.add_subparsers(dest="command")

    prune_parser = subparsers.add_parser(
        "prune",
        help="Disable every feature the project builds and tests without",
    )
    prune_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report prunable features without editing any manifest",
    )
    prune_parser.add_argument(
        "--skip-tests",
        action="store_true",
        default=None,
        help="Only build, do not run the test suite",
    )
    prune_parser.add_argument(
        "-t",
        "--no-tmp",
        action="store_true",
        help="Do not copy the project into a temporary directory",
    )
    prune_parser.add_argument(
        "-c",
        "--clean",
        choices=[level.value for level in CleanLevel],
        default=None,
        help="Run cargo clean after each package or dependency",
    )
    prune_parser.add_argument(
        "-d",
        "--only-dependency",
        action="store_true",
        default=None,
        help="Only check features that enable extra dependencies",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Synchronous entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)

    try:
        use_config_file(args.config)
        setup_logging(level=args.log_level)
        _dispatch(args)
    except CrateFeaturesError as e:
        logger.error("crate-features failed", error=str(e), error_type=type(e).__name__)
        Console(theme=FEATURES_THEME, stderr=True).print(f"[error]error:[/error] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


def _dispatch(args: argparse.Namespace) -> None:
    from crate_features.manifest.metadata import load_document

    document = load_document(".")

    if args.command == "prune":
        from crate_features.prune.display import ConsoleReporter
        from crate_features.prune.runner import prune

        prune(
            document,
            dry_run=args.dry_run,
            skip_tests=args.skip_tests,
            clean=args.clean,
            sandbox=False if args.no_tmp else None,
            only_dependency=args.only_dependency,
            reporter=ConsoleReporter(),
        )
        return

    from crate_features.cli.picker import FeaturePicker

    FeaturePicker(document).run(dependency=args.dependency)


if __name__ == "__main__":
    run()
