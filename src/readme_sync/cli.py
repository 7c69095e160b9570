"""``readme-sync`` command-line entry point.

Configuration is assembled once per run with unified precedence:
CLI args > env vars (``.env`` loaded first) > YAML config > defaults.
Anything wrong with it is reported before a single remote call is made
and exits with status 2. A run where any document failed exits with 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .catalog import Catalog, Predicate, by_path, in_categories
from .config import Config, load_config
from .config_loader import load_hierarchical_config
from .config_schema import build_config
from .core.async_utils import init_semaphore, run_sync
from .core.client import ReadmeClient
from .errors import ConfigurationError
from .filters.pipeline import FilterPipeline, create_pipeline
from .local_store import LocalStore
from .logger import setup_logging
from .sync.engine import SyncEngine, SyncOptions
from .sync.models import SyncReport
from .sync.remote import ReadmeRemoteStore
from .sync.reporter import (
    format_dry_run_preview,
    format_stale_warning,
    format_sync_report,
    report_to_json,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


@dataclass
class Settings:
    """Everything a command needs, resolved from all configuration sources."""

    config: Config
    pipeline: FilterPipeline
    docs_dir: str
    categories: list[str]


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _split_categories(value: str) -> list[str]:
    return [slug.strip() for slug in value.split(",") if slug.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readme-sync",
        description="Sync Markdown documentation back and forth between a local "
        "directory and a ReadMe-published documentation site.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Push two categories, previewing first
  readme-sync push guides,reference --dry-run
  readme-sync push guides,reference

  # Push a single file, relative to the docs directory
  readme-sync push --file guides/getting-started.md

  # Fetch everything listed in config.yml and offer to prune stale files
  readme-sync fetch --prune-stale

The API key and docs version can also be set with README_API_KEY and
README_DOCS_VERSION (a .env file is read), or in the config file.
        """,
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the YAML configuration file (default: discovered, starting with ./config.yml)",
    )
    parser.add_argument(
        "-k",
        "--api-key",
        help="ReadMe API key (takes precedence over README_API_KEY and config files)",
    )
    parser.add_argument(
        "--docs-version",
        help="Documentation version to act upon (takes precedence over README_DOCS_VERSION)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log record format on stderr (default: text)",
    )
    parser.add_argument("--log-file", help="Also append log records to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"readme-sync version {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    push = commands.add_parser(
        "push",
        help="Update ReadMe from the local Markdown files",
        description="Create or update pages on ReadMe from local Markdown files. "
        "Pages whose content is unchanged are skipped.",
    )
    push.add_argument(
        "categories",
        nargs="?",
        type=_split_categories,
        help="Comma-delimited category slugs (default: categories from the config file)",
    )
    push.add_argument("-d", "--dir", help="Directory holding the Markdown files")
    push.add_argument(
        "-f", "--file", help="Push a single file, relative to the docs directory"
    )
    push.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without changing anything",
    )
    push.add_argument(
        "--force", action="store_true", help="Update pages even if unchanged"
    )
    push.add_argument(
        "--prune",
        action="store_true",
        help="Delete remote pages that do not exist locally",
    )
    push.add_argument(
        "--hidden", action="store_true", help="Push every page as hidden"
    )
    push.add_argument("--json", action="store_true", help="Print the report as JSON")

    fetch = commands.add_parser(
        "fetch",
        help="Overwrite local Markdown files with content from ReadMe",
        description="Fetch pages from ReadMe and write them locally. Local pages "
        "that were not found remotely are reported as possibly stale.",
    )
    fetch.add_argument(
        "categories",
        nargs="?",
        type=_split_categories,
        help="Comma-delimited category slugs (default: categories from the config file)",
    )
    fetch.add_argument("-d", "--dir", help="Directory to write the Markdown files to")
    fetch.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be written without changing anything",
    )
    fetch.add_argument(
        "--prune-stale",
        action="store_true",
        help="Offer to delete local pages that were not found on ReadMe",
    )
    fetch.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="With --prune-stale, delete without asking",
    )
    fetch.add_argument("--json", action="store_true", help="Print the report as JSON")

    return parser


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def load_settings(args: argparse.Namespace) -> Settings:
    """Resolve configuration from every source.

    Raises:
        ConfigurationError: If any source is unreadable or invalid, required
            values are missing, or the filter pipeline cannot be built.
    """
    # .env first so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    try:
        raw = load_hierarchical_config(args.config)
        unified = build_config(raw)
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not load configuration: {e}") from e

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=args.log_format,
        level=unified.logging.level,
    )

    config = load_config(
        api_key=args.api_key,
        docs_version=args.docs_version,
        debug=args.debug,
        yaml_fallbacks=unified.readme.model_dump(exclude_none=True),
    )
    pipeline = create_pipeline(unified.sync.filters)

    return Settings(
        config=config,
        pipeline=pipeline,
        docs_dir=args.dir or unified.sync.dir,
        categories=args.categories or list(unified.sync.categories),
    )


def _selection_predicates(args: argparse.Namespace, settings: Settings) -> list[Predicate]:
    if args.file:
        return [by_path(args.file)]
    if not settings.categories:
        raise ConfigurationError(
            "No categories to process. Pass comma-delimited category slugs "
            "or set 'categories' in the config file."
        )
    return [in_categories(settings.categories)]


def _make_engine(
    settings: Settings, store: LocalStore, catalog: Catalog, options: SyncOptions
) -> SyncEngine:
    init_semaphore(settings.config.max_parallel_requests)
    remote = ReadmeRemoteStore(ReadmeClient(settings.config))
    return SyncEngine(remote, store, catalog, settings.pipeline, options)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _print_reports(reports: list[SyncReport], as_json: bool) -> None:
    if as_json:
        print(json.dumps({"reports": [report_to_json(r) for r in reports]}, indent=2))
        return
    for report in reports:
        if report.dry_run:
            print(format_dry_run_preview(report))
        else:
            print(format_sync_report(report))
        print()


def _confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in ("y", "yes")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def run_push(args: argparse.Namespace, settings: Settings) -> list[SyncReport]:
    predicates = _selection_predicates(args, settings)
    store = LocalStore(settings.docs_dir)
    catalog = Catalog.build(store)

    selection = catalog.select(*predicates)
    if not selection:
        logger.warning("No files found to push.")
        return []

    engine = _make_engine(
        settings,
        store,
        catalog,
        SyncOptions(dry_run=args.dry_run, force=args.force, hidden=args.hidden),
    )
    reports = [await engine.push(selection)]

    if args.prune:
        categories = settings.categories or sorted({d.category for d in selection})
        reports.append(await engine.prune(categories, selection, *predicates))
    return reports


async def run_fetch(args: argparse.Namespace, settings: Settings) -> list[SyncReport]:
    if not settings.categories:
        raise ConfigurationError(
            "No categories to fetch. Pass comma-delimited category slugs "
            "or set 'categories' in the config file."
        )
    store = LocalStore(settings.docs_dir)
    catalog = Catalog.build(store)

    engine = _make_engine(settings, store, catalog, SyncOptions(dry_run=args.dry_run))
    report = await engine.fetch(settings.categories)
    reports = [report]

    warning = format_stale_warning(report)
    if warning:
        print(warning, file=sys.stderr)
        if args.prune_stale and (
            args.yes
            or await run_sync(
                _confirm,
                "They might have been deleted or moved. Do you want to prune these pages?",
            )
        ):
            reports.append(await engine.remove_stale(report))
    return reports


_COMMANDS: dict[str, Any] = {"push": run_push, "fetch": run_fetch}


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command and return the exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
        reports = asyncio.run(_COMMANDS[args.command](args, settings))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

    _print_reports(reports, args.json)
    if any(report.has_errors for report in reports):
        return EXIT_FAILURES
    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
