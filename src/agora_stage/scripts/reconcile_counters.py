"""Audit and repair denormalized post counters."""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from agora_stage.core.settings import settings
from agora_stage.db.session import SessionLocal
from agora_stage.services.posts import reconcile_counters

logger = logging.getLogger("agora_stage.reconcile")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Recompute like counters from like rows and reset comment counters",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drifted posts without writing any change.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[reconcile] %(levelname)s %(message)s",
    )

    db = SessionLocal()
    try:
        count = reconcile_counters(db, dry_run=args.dry_run)
    except SQLAlchemyError:
        logger.exception("Reconciliation failed")
        return 1
    finally:
        db.close()

    verb = "would fix" if args.dry_run else "fixed"
    print(f"[reconcile] {verb} {count} post(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
