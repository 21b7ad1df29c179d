"""
Data migrations for the metadata store.

Two passes, both safe to run on every start:
- Legacy schema: fold the old color1/color2/color3 columns into the
  colors list column and drop them.
- Word repair: re-apply the keyword filter to every stored word list.
  Early analyzer output leaked meta-phrases ("no text visible") and
  non-ASCII fragments before the filter existed.
"""

import json
import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from db.database import get_engine
from db.operations import ImageRepository
from wallsync.word_filter import filter_words

logger = logging.getLogger(__name__)

LEGACY_COLOR_COLUMNS = ("color1", "color2", "color3")
LEGACY_COLOR_INDEX = "idx_colors"


def migrate_legacy_colors(engine: Engine | None = None) -> int:
    """
    Move color1..color3 values into the colors JSON list.

    Rows that already carry a non-empty colors list keep it.

    Returns:
        Number of rows inspected (0 when the schema is already current).
    """
    engine = engine or get_engine()
    inspector = inspect(engine)
    if not inspector.has_table("images"):
        return 0

    columns = {column["name"] for column in inspector.get_columns("images")}
    legacy = [column for column in LEGACY_COLOR_COLUMNS if column in columns]
    if not legacy:
        return 0

    logger.info(f"Migrating legacy color columns: {', '.join(legacy)}")

    with engine.begin() as conn:
        if "colors" not in columns:
            conn.execute(text("ALTER TABLE images ADD COLUMN colors TEXT"))

        rows = conn.execute(
            text(f"SELECT id, colors, {', '.join(legacy)} FROM images")
        ).all()

        for row in rows:
            if row.colors and json.loads(row.colors):
                continue
            colors = [value for value in row[2:] if value]
            conn.execute(
                text("UPDATE images SET colors = :colors WHERE id = :id"),
                {"colors": json.dumps(colors), "id": row.id},
            )

        conn.execute(text(f"DROP INDEX IF EXISTS {LEGACY_COLOR_INDEX}"))
        for column in legacy:
            conn.execute(text(f"ALTER TABLE images DROP COLUMN {column}"))

    logger.info(f"Migrated colors for {len(rows)} record(s)")
    return len(rows)


def clean_stored_words(repository: ImageRepository | None = None) -> int:
    """
    Re-filter every stored word list and rewrite the ones that changed.

    Returns:
        Number of records rewritten.
    """
    repository = repository or ImageRepository()
    cleaned = 0

    for image in repository.get_all():
        words = filter_words(image.words)
        if words != image.words:
            repository.set_words(image.filename, words)
            logger.debug(
                f"Cleaned words for {image.filename}: "
                f"{len(image.words)} -> {len(words)}"
            )
            cleaned += 1

    if cleaned:
        logger.info(f"Cleaned word lists for {cleaned} record(s)")
    return cleaned


def run_migrations(engine: Engine | None = None) -> dict[str, int]:
    """
    Run every migration in order.

    Returns:
        Dictionary with the count reported by each migration.
    """
    return {
        "legacy_colors": migrate_legacy_colors(engine),
        "cleaned_words": clean_stored_words(),
    }
