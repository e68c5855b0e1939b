"""Command-line entry point.

Usage:
    column-areas run.json [--dry-run] [--log-level DEBUG]

Exit codes:
    0  every site tessellated and every write succeeded
    1  fatal error before any write (message names the stage)
    2  run completed but at least one (site, store) write failed
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from application.config import Settings, load_run_config
from application.pipeline import AdapterFactory, run_pipeline
from domain.errors import ColumnAreasError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="column-areas",
        description="Tessellate column sites within a boundary and sync the areas.",
    )
    parser.add_argument("config", help="path to the JSON run configuration")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="tessellate and report, writing to in-memory stores only",
    )
    parser.add_argument("--log-level", help="override COLUMN_AREAS_LOG_LEVEL")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    factory = AdapterFactory(settings)
    try:
        config = load_run_config(args.config)
        report = run_pipeline(
            config,
            factory.site_source(config),
            factory.region_source(config),
            factory.stores(config, dry_run=args.dry_run),
        )
    except ColumnAreasError as e:
        logger.error("Run aborted at %s stage: %s", e.stage, e)
        print(f"error [{e.stage}]: {e}", file=sys.stderr)
        return EXIT_FATAL
    finally:
        factory.dispose()

    for failure in report.sync.failures:
        print(
            f"failed write: site {failure.site_id} -> {failure.store}: {failure.error}",
            file=sys.stderr,
        )
    print(
        f"{report.site_count} sites, {len(report.areas)} areas, "
        f"{report.sync.inserted} inserted, {report.sync.updated} updated, "
        f"{report.sync.failed_writes} failed"
    )
    return EXIT_OK if report.ok else EXIT_PARTIAL


if __name__ == "__main__":
    sys.exit(main())
