#!/usr/bin/env python3
# scripts/release_expired_reservations.py
"""
Expire lapsed reservations and return their held units to stock.

Request paths already do this lazily; run this from cron when dispensers see
little traffic and stock should not stay parked on dead claims.

Run:
  python -m scripts.release_expired_reservations
"""
from __future__ import annotations

import logging

from medistock.core.database import SessionLocal
from medistock.core.logging_config import configure_logging
from medistock.repositories.sqlalchemy_store import SqlAlchemyReservationStore
from medistock.services.reservation_service import release_lapsed_reservations

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()
    db = SessionLocal()
    try:
        count = release_lapsed_reservations(SqlAlchemyReservationStore(db))
    finally:
        db.close()
    logger.info("Released %s lapsed reservation(s)", count)


if __name__ == "__main__":
    main()
