#!/usr/bin/env python3
# scripts/seed_demo_data.py
"""
MediStock demo data seeder.

Run:
  python -m scripts.seed_demo_data --seed
  python -m scripts.seed_demo_data --reset   # drop all tables, recreate, seed
"""
from __future__ import annotations

import argparse
import logging
import sys

from medistock.core.database import engine, session_scope
from medistock.core.logging_config import configure_logging
from medistock.models import Base
from medistock.services.seed_service import seed_demo_data

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed / reset MediStock demo data")
    parser.add_argument("--seed", action="store_true", help="Create missing tables and seed demo data")
    parser.add_argument("--reset", action="store_true", help="Drop every table, recreate and seed")
    args = parser.parse_args()

    if not (args.seed or args.reset):
        parser.print_help()
        sys.exit(1)

    configure_logging()

    if args.reset:
        logger.warning("Dropping all MediStock tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        created = seed_demo_data(db)
    print(f"DB seed OK: {created}")


if __name__ == "__main__":
    main()
