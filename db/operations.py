"""
Database CRUD operations for Wallpaper Sync.

Provides ImageRepository class with methods for:
- Upserting analyzed image records
- Creating bare records for newly observed files
- Reading and searching the metadata index
- Deleting records when remote objects go away
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator

from sqlalchemy import String, Text, cast, delete, func, or_, select, type_coerce
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from db.database import session_scope
from db.models import Image, as_naive_utc

logger = logging.getLogger(__name__)

# Columns overwritten when an upsert hits an existing filename.
# filename and date_added keep their first values.
UPSERT_COLUMNS = (
    "last_modified",
    "width",
    "height",
    "pixel_density",
    "file_format",
    "colors",
    "words",
    "processed_at",
)


class ImageRepository:
    """
    Repository for Image database operations.

    Provides CRUD operations and queries for the images table.
    Can be used with a provided session or create its own.
    """

    def __init__(self, session: Session | None = None):
        """
        Initialize repository with optional session.

        Args:
            session: SQLAlchemy session. If None, every operation runs in
                    its own session_scope() and commits on return.
        """
        self._session = session

    @contextmanager
    def _scope(self) -> Generator[Session, None, None]:
        if self._session:
            yield self._session
            self._session.flush()
        else:
            with session_scope() as session:
                yield session

    # ────────────────────────────────────────────────────────────────────────────
    # Write Operations
    # ────────────────────────────────────────────────────────────────────────────

    def upsert(self, image: Image) -> None:
        """
        Insert an image record, or update it if the filename exists.

        On conflict every column except filename and date_added is replaced,
        in a single INSERT ... ON CONFLICT statement.

        Args:
            image: Fully populated (transient) Image instance.
        """
        values = {
            "filename": image.filename,
            "date_added": as_naive_utc(image.date_added),
            "last_modified": as_naive_utc(image.last_modified),
            "width": image.width,
            "height": image.height,
            "pixel_density": image.pixel_density,
            "file_format": image.file_format,
            "colors": list(image.colors or []),
            "words": list(image.words or []),
            "processed_at": as_naive_utc(image.processed_at),
        }
        if values["date_added"] is None:
            del values["date_added"]  # let the column default apply

        stmt = insert(Image).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Image.filename],
            set_={column: stmt.excluded[column] for column in UPSERT_COLUMNS},
        )

        with self._scope() as session:
            session.execute(stmt)

        logger.debug(f"Upserted image record: {image.filename}")

    def ensure_bare_record(
        self,
        filename: str,
        created: datetime | None,
        updated: datetime | None,
    ) -> None:
        """
        Create a basic record for an image if it doesn't exist.

        An existing unprocessed record only gets its last_modified refreshed.
        A processed record is never touched.

        Args:
            filename: Canonical filename.
            created: Creation time, stored as date_added on insert.
            updated: Modification time.
        """
        values = {
            "filename": filename,
            "last_modified": as_naive_utc(updated),
            "colors": [],
            "words": [],
        }
        if created is not None:
            values["date_added"] = as_naive_utc(created)

        stmt = insert(Image).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Image.filename],
            set_={"last_modified": stmt.excluded.last_modified},
            where=Image.processed_at.is_(None),
        )

        with self._scope() as session:
            session.execute(stmt)

    def set_words(self, filename: str, words: list[str]) -> bool:
        """
        Replace the word list of an existing record.

        Returns:
            True if a record was updated.
        """
        with self._scope() as session:
            image = session.execute(
                select(Image).where(Image.filename == filename)
            ).scalar_one_or_none()
            if image is None:
                return False
            image.words = list(words)
            return True

    def delete(self, filename: str) -> bool:
        """
        Delete an image record by filename.

        Returns:
            True if deleted, False if not found.
        """
        with self._scope() as session:
            result = session.execute(delete(Image).where(Image.filename == filename))
            deleted = result.rowcount > 0

        if deleted:
            logger.debug(f"Deleted image record: {filename}")
        return deleted

    # ────────────────────────────────────────────────────────────────────────────
    # Read Operations
    # ────────────────────────────────────────────────────────────────────────────

    def get_by_filename(self, filename: str) -> Image | None:
        """
        Get image by canonical filename.

        Returns:
            Image instance or None if not found.
        """
        stmt = select(Image).where(Image.filename == filename)

        with self._scope() as session:
            return session.execute(stmt).scalar_one_or_none()

    def is_processed(self, filename: str) -> bool:
        """True iff a record exists and its analysis has completed."""
        stmt = select(Image.processed_at).where(Image.filename == filename)

        with self._scope() as session:
            row = session.execute(stmt).first()

        return row is not None and row.processed_at is not None

    def get_all(self) -> list[Image]:
        """
        Get all images, newest first.

        Returns:
            List of Image instances ordered by date_added descending.
        """
        stmt = select(Image).order_by(Image.date_added.desc(), Image.id.desc())

        with self._scope() as session:
            return list(session.execute(stmt).scalars().all())

    def search(self, query: str) -> list[Image]:
        """
        Search images by a free-text query.

        Matches case-insensitively as a substring against the word list,
        the colors, the filename, the file format and "{width}x{height}".

        Args:
            query: Search text. Blank returns every image.

        Returns:
            Matching Image instances ordered by date_added descending.
        """
        query = query.strip().lower()
        if not query:
            return self.get_all()

        resolution = cast(Image.width, String) + "x" + cast(Image.height, String)
        stmt = select(Image).where(
            or_(
                func.lower(type_coerce(Image.words, Text)).contains(query, autoescape=True),
                func.lower(type_coerce(Image.colors, Text)).contains(query, autoescape=True),
                func.lower(Image.filename).contains(query, autoescape=True),
                func.lower(Image.file_format).contains(query, autoescape=True),
                resolution.contains(query, autoescape=True),
            )
        ).order_by(Image.date_added.desc(), Image.id.desc())

        with self._scope() as session:
            return list(session.execute(stmt).scalars().all())

    def count(self) -> int:
        """Count all image records."""
        with self._scope() as session:
            return session.execute(select(func.count(Image.id))).scalar() or 0

    def count_processed(self) -> int:
        """Count records whose analysis has completed."""
        stmt = select(func.count(Image.id)).where(Image.processed_at.isnot(None))

        with self._scope() as session:
            return session.execute(stmt).scalar() or 0
