"""
Main Entry Point

Run a single scoring pass or keep scoring on a schedule:

    python -m farm_safety.main run --store output/farms.json --dry-run
    python -m farm_safety.main schedule --interval 30
"""

import argparse
import logging
from dataclasses import replace

from .coreutils.errors import FarmSafetyError
from .coreutils.logging import log_level_from_name, setup_logging
from .orchestration.pipeline import create_orchestrator
from .orchestration.scheduler import create_scheduler
from .orchestration.settings import ScoringSettings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Farm Safety Scoring")
    parser.add_argument("command", choices=["run", "schedule"], help="Command to run")
    parser.add_argument("--store", help="Path to the farm document store (JSON)")
    parser.add_argument("--api-url", help="Read farms from this URL instead of the store")
    parser.add_argument("--export", help="Directory to export scored farms to")
    parser.add_argument(
        "--interval", type=int, help="Minutes between scheduled scoring passes"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute scores without persisting them",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> ScoringSettings:
    """Environment settings, overridden by any command line options given"""
    settings = ScoringSettings.from_env()
    overrides = {
        "farm_store_path": args.store,
        "farms_api_url": args.api_url,
        "export_dir": args.export,
        "interval_minutes": args.interval,
    }
    return replace(
        settings, **{key: value for key, value in overrides.items() if value is not None}
    )


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)

    level = logging.DEBUG if args.verbose else log_level_from_name(settings.log_level)
    setup_logging(level, settings.log_dir)

    orchestrator = create_orchestrator(settings, dry_run=args.dry_run)

    if args.command == "run":
        try:
            scoring_pass = orchestrator.run_scoring_pass()
        except FarmSafetyError as e:
            logger.error(f"❌ Scoring pass failed: {e}")
            return 1
        report = scoring_pass.report
        print(
            f"✅ Scored {len(report.scored)} farms, persisted {report.persisted_count}, "
            f"{len(report.failed)} failed, {len(report.diagnostics)} diagnostics"
        )
        return 0 if report.succeeded else 1

    scheduler = create_scheduler(orchestrator, settings.interval_minutes)
    scheduler.start()
    return 0


if __name__ == "__main__":
    exit(main())
