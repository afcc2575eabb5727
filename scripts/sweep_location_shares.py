"""
Delete expired location shares from Firestore.

Usage:
  - Dry run (default): python scripts/sweep_location_shares.py
  - Delete: python scripts/sweep_location_shares.py --apply

Meant to be run on a schedule (cron, Cloud Scheduler). Safe to run repeatedly:
a share is only deleted once its expires_at has passed.
"""

import argparse
import logging
import sys

from sentinel.core.settings import settings
from sentinel.services.firestore_repository import LOCATION_SHARES, FirestoreRepository
from sentinel.services.location_service import get_location_service
from sentinel.utils.firestore_helpers import utcnow, where_filter


def count_expired(repository: FirestoreRepository) -> int:
    query = where_filter(repository.db.collection(LOCATION_SHARES), "expires_at", "<", utcnow())
    return len(list(query.stream()))


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete expired location shares")
    parser.add_argument("--apply", action="store_true", help="Delete instead of only counting")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    service = get_location_service()

    if not args.apply:
        print(f"Expired location shares: {count_expired(service.repository)} (dry run, pass --apply to delete)")
        return 0

    if not service.sweep_expired_shares():
        print("Sweep failed, see log for details")
        return 1

    print("Sweep complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
