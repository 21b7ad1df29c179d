"""
Database module for Wallpaper Sync.

This module provides database connectivity, the image model, and the
operations the reconciler uses to keep the metadata index current.
"""

from db.database import get_engine, get_session, init_db
from db.models import Image
from db.operations import ImageRepository

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "Image",
    "ImageRepository",
]
