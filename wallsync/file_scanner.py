"""
File scanner module for discovering wallpapers in the local folder.

Provides directory scanning that skips hidden files and logs the
directories it descends into, plus a LocalFile snapshot for one file.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator

from wallsync.filetimes import get_creation_time, get_modification_time

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """A local file read fresh for this run."""
    path: Path
    data: bytes
    modified: datetime
    created: datetime

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def read(cls, path: Path) -> "LocalFile":
        """Read bytes and timestamps of a file."""
        stats = path.stat()
        return cls(
            path=path,
            data=path.read_bytes(),
            modified=get_modification_time(stats),
            created=get_creation_time(stats),
        )


class FileScanner:
    """
    Scanner for discovering files in the wallpaper folder.

    Any directory that cannot be read fails the whole scan, so a run
    never mistakes an unreadable folder for deleted files.

    Attributes:
        recursive: Whether to scan subdirectories.
    """

    def __init__(self, recursive: bool = True):
        self.recursive = recursive

    def scan(self, directory: str | Path) -> list[Path]:
        """
        Scan directory for files.

        Args:
            directory: Path to directory to scan.

        Returns:
            List of file paths, sorted by name.

        Raises:
            ValueError: If directory doesn't exist or isn't a directory.
            OSError: If the directory or any subdirectory cannot be read.
        """
        directory = Path(directory)

        if not directory.exists():
            raise ValueError(f"Directory does not exist: {directory}")

        if not directory.is_dir():
            raise ValueError(f"Path is not a directory: {directory}")

        files = list(self._scan_iter(directory))
        files.sort(key=lambda p: (str(p.parent), p.name.lower()))

        logger.info(f"Found {len(files)} file(s) in {directory}")
        return files

    def _scan_iter(self, directory: Path) -> Iterator[Path]:
        for path in sorted(directory.iterdir()):
            if path.is_dir():
                logger.info(f"Found a dir: {path.name!r}")
                if self.recursive:
                    yield from self._scan_iter(path)
                continue

            if self._is_candidate(path):
                yield path

    @staticmethod
    def _is_candidate(path: Path) -> bool:
        return path.is_file() and not path.name.startswith(".")
