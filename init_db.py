#!/usr/bin/env python3
"""
Database initialization script for Wallpaper Sync.

This script:
1. Verifies the metadata store can be opened
2. Creates all tables defined in models
3. Runs data migrations (legacy color columns, word cleanup)

Usage:
    python init_db.py [--verbose] [--check-only]
"""

import argparse
import logging
import sys

from db.database import (
    dispose_engine,
    get_db_info,
    init_db,
    verify_connection,
)
from db.migrations import run_migrations
from db.operations import ImageRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    """Initialize the database."""
    parser = argparse.ArgumentParser(
        description="Initialize the Wallpaper Sync metadata store"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output including database location"
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only verify the store opens, don't create tables or migrate"
    )
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    print("=" * 60)
    print("Wallpaper Sync - Database Initialization")
    print("=" * 60)
    print()

    if args.verbose:
        print("Database:")
        for key, value in get_db_info().items():
            print(f"  {key}: {value}")
        print()

    # Step 1: Verify connection
    print("[1/3] Opening metadata store...")
    if not verify_connection():
        print()
        print("ERROR: Could not open the metadata store!")
        print("Check that WALLPAPER_DB_PATH points to a writable location.")
        dispose_engine()
        sys.exit(1)

    print("  -> OK")
    print()

    if args.check_only:
        print("Check-only mode: Skipping table creation.")
        dispose_engine()
        sys.exit(0)

    # Step 2: Create tables
    print("[2/3] Creating database tables...")
    if not init_db():
        print()
        print("ERROR: Failed to create tables!")
        print("Check the logs above for details.")
        dispose_engine()
        sys.exit(1)

    print("  -> Tables created successfully!")
    print()

    # Step 3: Migrations
    print("[3/3] Running migrations...")
    migrated = run_migrations()
    for name, count in migrated.items():
        print(f"  {name}: {count}")
    print()

    repository = ImageRepository()
    print("=" * 60)
    print("Database initialization complete!")
    print("=" * 60)
    print(f"  Images: {repository.count()}")
    print(f"  Processed: {repository.count_processed()}")
    print()

    dispose_engine()


if __name__ == "__main__":
    main()
