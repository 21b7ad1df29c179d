"""
SQLAlchemy models for Wallpaper Sync.

Database Schema:
----------------
images table:
    - id: Primary key, auto-increment
    - filename: Canonical filename, identical to the remote object key
    - date_added: When the file was first seen (file creation time)
    - last_modified: File modification time
    - width: Image width in pixels
    - height: Image height in pixels
    - pixel_density: Megapixels (width * height / 1e6)
    - file_format: jpeg, png, gif, webp or the literal extension
    - colors: Up to 3 dominant colors as hex strings (JSON list)
    - words: Descriptive / OCR keywords (JSON list)
    - processed_at: Timestamp of the last successful analysis, NULL until then
"""

import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form SQLite stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class JSONList(TypeDecorator):
    """
    Ordered list of strings stored as JSON text.

    NULL and empty columns load as an empty list, so callers never see None.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return json.dumps(list(value or []))

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return list(json.loads(value))


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Image(Base):
    """
    SQLAlchemy model for the images table.

    One row per published wallpaper, keyed by its canonical filename.
    """
    __tablename__ = "images"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    filename: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # File timestamps
    date_added: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    last_modified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Image properties
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pixel_density: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    file_format: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Analysis output
    colors: Mapped[List[str]] = mapped_column(JSONList, nullable=True, default=list)
    words: Mapped[List[str]] = mapped_column(JSONList, nullable=True, default=list)

    # Set once analysis has completed
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_images_date_added", "date_added"),
        Index("idx_images_processed_at", "processed_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Image(id={self.id}, filename='{self.filename}', "
            f"processed={self.processed_at is not None})>"
        )

    @property
    def is_processed(self) -> bool:
        """True once analysis has completed for this image."""
        return self.processed_at is not None

    @property
    def resolution(self) -> str | None:
        """Dimensions as the "{width}x{height}" string used by search."""
        if self.width is None or self.height is None:
            return None
        return f"{self.width}x{self.height}"

    def to_dict(self) -> dict:
        """Convert model to dictionary for serialization."""
        return {
            "id": self.id,
            "filename": self.filename,
            "date_added": self.date_added.isoformat() if self.date_added else None,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "width": self.width,
            "height": self.height,
            "pixel_density": self.pixel_density,
            "file_format": self.file_format,
            "colors": list(self.colors or []),
            "words": list(self.words or []),
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }
