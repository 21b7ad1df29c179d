#!/usr/bin/env python3
"""
CLI entry point for the wallpaper sync.

Mirrors the local wallpaper folder into the bucket, refreshes the
metadata index and removes objects whose files were deleted locally.
Meant to be run periodically (cron, launchd); never run two at once
against the same folder.

Usage:
    python run_sync.py ~/Dropbox/Photos/Wallpapers
    python run_sync.py --bucket my-walls --db walls.db -v
    python run_sync.py --no-words --refresh-probability 0
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from db.database import dispose_engine, get_db_path, init_db, verify_connection
from db.migrations import run_migrations
from wallsync.analyzer import ImageAnalyzer
from wallsync.reconciler import REFRESH_PROBABILITY, SyncError, sync_folder
from wallsync.remote_store import GCSRemoteStore, RemoteStoreError
from wallsync.word_extractor import DEFAULT_MODEL, WordExtractor


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """Configure logging for the sync run."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


def run_sync(args: argparse.Namespace) -> int:
    """Run one reconciliation pass."""
    if args.db:
        os.environ["WALLPAPER_DB_PATH"] = args.db

    print(f"Opening metadata store: {get_db_path()}")
    if not verify_connection() or not init_db():
        print("ERROR: Could not open the metadata store.")
        return 1

    migrated = run_migrations()
    if any(migrated.values()):
        print(f"Migrations: {migrated}")

    word_extractor = None if args.no_words else WordExtractor(model=args.model)
    analyzer = ImageAnalyzer(word_extractor=word_extractor)
    remote_store = GCSRemoteStore(bucket_name=args.bucket)

    print("Sync Configuration:")
    print(f"  Local folder: {args.path}")
    print(f"  Bucket: {remote_store.bucket_name}")
    print(f"  Words: {'disabled' if args.no_words else args.model}")
    print(f"  Refresh probability: {args.refresh_probability:.0%}")
    print()

    try:
        stats = sync_folder(
            args.path,
            remote_store=remote_store,
            analyzer=analyzer,
            refresh_probability=args.refresh_probability,
            verbose=args.verbose,
        )
    except (SyncError, RemoteStoreError) as e:
        print(f"ERROR: {e}")
        return 1

    print("\n" + stats.summary())

    # Per-file failures are retried by the next run
    return 0


def main() -> int:
    """Main entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Sync a local wallpaper folder to Cloud Storage and index it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  WALLPAPER_DIR       Default local folder
  WALLPAPER_BUCKET    Bucket name
  WALLPAPER_DB_PATH   SQLite metadata store (default: wallpapers.db)
  OPENAI_API_KEY      Credential for word extraction

Examples:
  python run_sync.py ~/Pictures/Wallpapers
  python run_sync.py --no-words -v
        """
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=os.getenv("WALLPAPER_DIR"),
        help="Path to the local wallpaper folder (default: $WALLPAPER_DIR)"
    )
    parser.add_argument(
        "--bucket",
        help="Bucket to sync into (default: $WALLPAPER_BUCKET)"
    )
    parser.add_argument(
        "--db",
        help="Path to the SQLite metadata store (default: $WALLPAPER_DB_PATH)"
    )

    # Analysis options
    parser.add_argument(
        "--no-words",
        action="store_true",
        help="Skip keyword extraction (dimensions and colors only)"
    )
    parser.add_argument(
        "--model",
        default=os.getenv("WORDS_MODEL", DEFAULT_MODEL),
        help=f"OpenAI model for keyword extraction (default: {DEFAULT_MODEL})"
    )
    parser.add_argument(
        "--refresh-probability",
        type=float,
        default=REFRESH_PROBABILITY,
        help="Chance of re-analyzing an already processed image (default: 0.1)"
    )

    # Output options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed progress output"
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file"
    )

    args = parser.parse_args()

    if not args.path:
        parser.error("the following arguments are required: path (or set WALLPAPER_DIR)")
    if not 0.0 <= args.refresh_probability <= 1.0:
        parser.error("--refresh-probability must be between 0 and 1")

    setup_logging(args.verbose, args.log_file)

    try:
        return run_sync(args)
    except KeyboardInterrupt:
        print("\n\nSync interrupted by user.")
        return 130
    finally:
        dispose_engine()


if __name__ == "__main__":
    sys.exit(main())
