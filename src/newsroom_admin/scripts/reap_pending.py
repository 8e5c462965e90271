# src/newsroom_admin/scripts/reap_pending.py
"""
Cron job removing orphaned Pending communities.

A community is created before its verification flow runs, so an abandoned
wizard leaves a Pending record behind. This script should be run periodically
to delete Pending communities older than PENDING_COMMUNITY_TTL_HOURS.
"""

from __future__ import annotations

import argparse
import logging
from datetime import timedelta

from newsroom_admin.core.settings import settings
from newsroom_admin.db.session import SessionLocal
from newsroom_admin.db.time import utcnow
from newsroom_admin.services.tickets import VerificationTicketStore

logger = logging.getLogger(__name__)


def reap_pending_communities(max_age_hours: int | None = None) -> int:
    """Delete stale Pending communities and return how many were removed."""
    hours = settings.pending_community_ttl_hours if max_age_hours is None else max_age_hours
    cutoff = utcnow() - timedelta(hours=hours)
    db = SessionLocal()
    try:
        removed = VerificationTicketStore(db).reap_pending(cutoff)
    finally:
        db.close()
    logger.info("Reaped %d Pending communities older than %d hours", removed, hours)
    return removed


def main() -> None:
    parser = argparse.ArgumentParser(description="Delete stale Pending communities")
    parser.add_argument(
        "--max-age-hours",
        type=int,
        default=None,
        help="Override PENDING_COMMUNITY_TTL_HOURS for this run.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    removed = reap_pending_communities(args.max_age_hours)
    print(f"[reap_pending] removed {removed} community record(s)")


if __name__ == "__main__":
    main()
