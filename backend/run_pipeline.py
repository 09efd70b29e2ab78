from __future__ import annotations
import argparse
import json
import logging
import sys
from dataclasses import asdict

from app.core.config import configure_logging, missing_required_settings, settings, validate_settings
from app.core.errors import ConfigError, PipelineError
from app.db.database import SessionLocal
from app.db.init_db import init_db
from app.services.pipeline_service import build_orchestrator
from app.services.zipcodes import load_zipcodes

logger = logging.getLogger("run_pipeline")


def load_zipcode_file(path: str) -> int:
    if "DATABASE_URL" in missing_required_settings(settings):
        logger.error("missing required configuration: DATABASE_URL")
        return 2
    init_db()
    try:
        with SessionLocal() as db:
            inserted, updated = load_zipcodes(db, path)
    except OSError as exc:
        logger.error("cannot read zipcode data: %s", exc)
        return 1
    print(json.dumps({"path": str(path), "inserted": inserted, "updated": updated}))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the job listing pipeline once")
    parser.add_argument("--batch-size", type=int, default=settings.default_batch_size)
    parser.add_argument(
        "--load-zipcodes",
        nargs="?",
        const=settings.zipcode_data_path,
        metavar="PATH",
        help="upsert a zipcode CSV (default: ZIPCODE_DATA_PATH) into us_zipcodes and exit",
    )
    args = parser.parse_args(argv)

    configure_logging(settings)
    if args.load_zipcodes:
        return load_zipcode_file(args.load_zipcodes)
    if args.batch_size <= 0:
        parser.error("--batch-size must be positive")
    try:
        validate_settings(settings)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    init_db()
    try:
        result = build_orchestrator().run(args.batch_size)
    except PipelineError as exc:
        logger.error("pipeline failed: %s", exc)
        return 1
    print(json.dumps(asdict(result)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
