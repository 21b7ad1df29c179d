"""
Main sync orchestrator.

Coordinates one batch run:
1. Remote listing (taken before anything is mutated)
2. Local walk: rename, fingerprint, upload, analyze, record
3. Deletion of remote objects that no longer exist locally
4. Bare metadata records for the remaining remote objects

Per-file problems are logged and recorded on the FileResult; only a
failing listing, an unreadable root or a failing remote delete aborts
the run.
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from db.models import Image, as_naive_utc, utcnow
from db.operations import ImageRepository
from wallsync.analyzer import AnalysisError, ImageAnalyzer
from wallsync.file_scanner import FileScanner, LocalFile
from wallsync.fingerprint import fingerprint
from wallsync.naming import file_format_for, mime_type_for, normalize_name
from wallsync.remote_store import RemoteObject, RemoteStore

logger = logging.getLogger(__name__)

# Share of already processed files re-analyzed on each run
REFRESH_PROBABILITY = 0.10

_system_random = secrets.SystemRandom()


class SyncError(Exception):
    """Exception raised when a run cannot proceed at all."""
    pass


@dataclass
class FileResult:
    """Result of reconciling a single local file."""
    path: Path
    original_name: str
    name: str | None = None  # canonical name, set once the rename step succeeded
    success: bool = False
    renamed: bool = False
    uploaded: bool = False
    unchanged: bool = False
    analyzed: bool = False
    analysis_reason: str | None = None
    analysis_error: str | None = None
    error: str | None = None
    processing_time: float = 0.0


@dataclass
class SyncStats:
    """Statistics for a sync run."""
    total_found: int = 0
    renamed: int = 0
    uploaded: int = 0
    unchanged: int = 0
    analyzed: int = 0
    analysis_failed: int = 0
    failed: int = 0
    deleted: int = 0
    start_time: datetime = field(default_factory=utcnow)
    end_time: datetime | None = None
    results: list[FileResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            "=" * 50,
            "Sync Complete",
            "=" * 50,
            f"Local files found: {self.total_found}",
            f"Renamed: {self.renamed}",
            f"Uploaded: {self.uploaded}",
            f"Unchanged: {self.unchanged}",
            f"Analyzed: {self.analyzed}",
            f"Analysis failures: {self.analysis_failed}",
            f"Failed: {self.failed}",
            f"Deleted remotely: {self.deleted}",
            f"Duration: {self.duration_seconds:.1f} seconds",
        ]

        if self.failed > 0:
            lines.append("")
            lines.append("Failed files:")
            for r in self.results:
                if not r.success:
                    lines.append(f"  - {r.original_name}: {r.error}")

        return "\n".join(lines)


class Reconciler:
    """
    Keeps a bucket and the metadata index in step with a local folder.

    Single-threaded and single-pass: every run is a finite batch, and a
    failed step is retried simply by running again. Fingerprints and the
    processed_at column make repeated runs free of duplicate work.
    """

    def __init__(
        self,
        remote_store: RemoteStore,
        analyzer: ImageAnalyzer,
        repository: ImageRepository | None = None,
        scanner: FileScanner | None = None,
        refresh_probability: float = REFRESH_PROBABILITY,
        refresh_chooser: Callable[[], bool] | None = None,
        progress_callback: Callable[[int, int, str], None] | None = None
    ):
        """
        Initialize the reconciler.

        Args:
            remote_store: Gateway to the bucket.
            analyzer: Image analyzer used for new and stale records.
            repository: Metadata store. If None, creates a new one.
            scanner: Local file scanner. If None, scans recursively.
            refresh_probability: Chance that an already processed file is
                                re-analyzed anyway.
            refresh_chooser: Replaces the random refresh decision; called
                            once per processed file.
            progress_callback: Callback(current, total, filename) for progress.
        """
        self.remote_store = remote_store
        self.analyzer = analyzer
        self.repository = repository or ImageRepository()
        self.scanner = scanner or FileScanner()
        self.refresh_probability = refresh_probability
        self.refresh_chooser = refresh_chooser or self._random_refresh
        self.progress_callback = progress_callback

    def run(self, directory: str | Path) -> SyncStats:
        """
        Reconcile a local folder with the bucket.

        Args:
            directory: Root of the local wallpaper folder.

        Returns:
            SyncStats with per-file results.

        Raises:
            SyncError: If the local folder cannot be read.
            RemoteStoreError: If listing or deleting remote objects fails.
        """
        directory = Path(directory)
        stats = SyncStats()

        logger.info(f"Starting sync for: {directory}")

        try:
            files = self.scanner.scan(directory)
        except (ValueError, OSError) as e:
            raise SyncError(f"Cannot read local folder {directory}: {e}") from e
        stats.total_found = len(files)

        remote_objects = self.list_remote()

        seen_locally = self.sync_local_files(files, stats)
        remaining = self.delete_missing(remote_objects, seen_locally, stats)
        self.register_remote_objects(remaining)

        stats.end_time = utcnow()
        logger.info(stats.summary())

        return stats

    def list_remote(self) -> list[RemoteObject]:
        """Full remote listing, newest first."""
        objects = self.remote_store.list_all()
        return sorted(
            objects,
            key=lambda obj: as_naive_utc(obj.created) or datetime.min,
            reverse=True,
        )

    # ────────────────────────────────────────────────────────────────────────────
    # Local walk
    # ────────────────────────────────────────────────────────────────────────────

    def sync_local_files(self, files: list[Path], stats: SyncStats) -> set[str]:
        """
        Reconcile every local file.

        Returns:
            Canonical names of the files present locally.
        """
        seen: set[str] = set()

        for i, path in enumerate(files, 1):
            if self.progress_callback:
                self.progress_callback(i, len(files), path.name)

            result = self.process_file(path, seen)
            stats.results.append(result)

            if result.name:
                seen.add(result.name)
            if result.renamed:
                stats.renamed += 1
            if result.uploaded:
                stats.uploaded += 1
            if result.unchanged:
                stats.unchanged += 1
            if result.analyzed:
                stats.analyzed += 1
            elif result.analysis_error:
                stats.analysis_failed += 1
            if not result.success:
                stats.failed += 1

        return seen

    def process_file(self, path: str | Path, seen: set[str] | None = None) -> FileResult:
        """
        Reconcile a single local file.

        Args:
            path: Path to the local file.
            seen: Canonical names already claimed earlier in this run.
                  A file mapping to one of them fails instead of
                  overwriting the other's remote copy.

        Returns:
            FileResult with outcome details.
        """
        start_time = time.time()

        path = Path(path)
        result = FileResult(path=path, original_name=path.name)

        try:
            path = self._rename(path, result, seen or set())
            local = LocalFile.read(path)
            self._upload_if_changed(local, result)
            self._analyze_if_needed(local, result)
            result.success = True

        except Exception as e:
            result.error = str(e)
            logger.error(f"Failed to process {result.original_name!r}: {e}")

        result.processing_time = time.time() - start_time
        return result

    def _rename(self, path: Path, result: FileResult, seen: set[str]) -> Path:
        canonical = normalize_name(path.name)
        if not canonical:
            raise ValueError(f"No usable characters in filename {path.name!r}")
        if canonical in seen:
            raise FileExistsError(
                f"Cannot use {path.name!r}: {canonical!r} already exists in another folder"
            )

        target = path.with_name(canonical)
        if canonical != path.name:
            if target.exists() and not path.samefile(target):
                raise FileExistsError(
                    f"Cannot rename {path.name!r}: {canonical!r} already exists"
                )
            path.rename(target)
            result.renamed = True
            logger.info(f"Renamed {path.name!r} => {canonical!r}")

        result.name = canonical
        result.path = target
        return target

    def _upload_if_changed(self, local: LocalFile, result: FileResult) -> None:
        remote_checksum = self.remote_store.fingerprint_of(local.name)
        if remote_checksum == fingerprint(local.data):
            result.unchanged = True
            logger.info(f"{local.name!r} unchanged, skipping upload")
            return

        content_type = mime_type_for(file_format_for(local.name))
        self.remote_store.upload(local.name, local.data, content_type)
        result.uploaded = True
        logger.info(f"Uploaded file: {local.name!r}")

    def _analyze_if_needed(self, local: LocalFile, result: FileResult) -> None:
        self.repository.ensure_bare_record(local.name, local.created, local.modified)
        existing = self.repository.get_by_filename(local.name)

        reason = self.analysis_reason(existing)
        if reason is None:
            logger.info(f"{local.name!r} already processed, skipping analysis")
            return

        result.analysis_reason = reason
        logger.info(f"Analyzing {local.name!r} ({reason})...")

        try:
            self.analyze_and_store(local, existing)
            result.analyzed = True
        except AnalysisError as e:
            # Record stays unprocessed and is retried next run
            result.analysis_error = str(e)
            logger.warning(f"Failed to analyze {local.name!r}: {e}")

    def analysis_reason(self, existing: Image | None) -> str | None:
        """
        Decide whether a file needs (re-)analysis.

        Returns:
            Human-readable reason, or None to skip analysis.
        """
        if existing is None or existing.processed_at is None:
            return "not processed"
        if not existing.words:
            return "words empty"
        if self.refresh_chooser():
            return f"random refresh ({self.refresh_probability:.0%})"
        return None

    def analyze_and_store(self, local: LocalFile, existing: Image | None) -> Image:
        """
        Analyze an image and store the metadata.

        Raises:
            AnalysisError: If the image cannot be decoded.
        """
        analysis = self.analyzer.analyze(local.data, file_format_for(local.name))

        image = Image(
            filename=local.name,
            date_added=existing.date_added if existing else local.created,
            last_modified=local.modified,
            width=analysis.width,
            height=analysis.height,
            pixel_density=analysis.pixel_density,
            file_format=analysis.file_format,
            colors=analysis.colors,
            words=analysis.words,
            processed_at=utcnow(),
        )
        self.repository.upsert(image)

        logger.info(
            f"Stored metadata for {local.name!r}: {analysis.width}x{analysis.height}, "
            f"{len(analysis.colors)} colors, {len(analysis.words)} words"
        )
        return image

    def _random_refresh(self) -> bool:
        return _system_random.random() < self.refresh_probability

    # ────────────────────────────────────────────────────────────────────────────
    # Remote cleanup
    # ────────────────────────────────────────────────────────────────────────────

    def delete_missing(
        self,
        remote_objects: list[RemoteObject],
        seen_locally: set[str],
        stats: SyncStats
    ) -> list[RemoteObject]:
        """
        Delete remote objects (and their records) with no local file.

        Keys are compared with "+" read as a space, matching how older
        uploads encoded spaces.

        Returns:
            The remote objects that were kept.

        Raises:
            RemoteStoreError: If a remote delete fails.
        """
        kept = []

        for obj in remote_objects:
            if obj.key.replace("+", " ") in seen_locally:
                kept.append(obj)
                continue

            self.remote_store.delete(obj.key)

            try:
                self.repository.delete(obj.key)
            except Exception as e:
                logger.error(f"Could not delete record {obj.key!r}: {e}")

            stats.deleted += 1
            logger.info(f"Deleted {obj.key!r}")

        return kept

    def register_remote_objects(self, remote_objects: list[RemoteObject]) -> None:
        """Make sure every published object has at least a bare record."""
        for obj in remote_objects:
            try:
                self.repository.ensure_bare_record(obj.key, obj.created, obj.updated)
            except Exception as e:
                logger.error(f"Could not record {obj.key!r}: {e}")


def sync_folder(
    folder: str | Path,
    remote_store: RemoteStore,
    analyzer: ImageAnalyzer,
    refresh_probability: float = REFRESH_PROBABILITY,
    verbose: bool = False
) -> SyncStats:
    """
    Convenience function to sync a folder.

    Args:
        folder: Path to the local wallpaper folder.
        remote_store: Gateway to the bucket.
        analyzer: Image analyzer.
        refresh_probability: Chance of re-analyzing a processed file.
        verbose: Print progress to console.

    Returns:
        SyncStats with results.
    """
    def progress(current: int, total: int, filename: str) -> None:
        if verbose:
            print(f"[{current}/{total}] Syncing: {filename}")

    reconciler = Reconciler(
        remote_store=remote_store,
        analyzer=analyzer,
        refresh_probability=refresh_probability,
        progress_callback=progress if verbose else None
    )

    return reconciler.run(folder)
