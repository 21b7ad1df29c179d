"""
Wallpaper sync pipeline.

This package keeps a Cloud Storage bucket in step with a local folder:
- Canonicalizing filenames
- Uploading new and changed files (CRC32C fingerprints)
- Analyzing images for dimensions, colors and keywords
- Deleting objects that were removed locally
"""

from wallsync.analyzer import AnalysisError, ImageAnalysis, ImageAnalyzer
from wallsync.file_scanner import FileScanner, LocalFile
from wallsync.naming import normalize_name
from wallsync.reconciler import Reconciler, SyncError, SyncStats, sync_folder
from wallsync.remote_store import GCSRemoteStore, RemoteObject, RemoteStore, RemoteStoreError
from wallsync.word_extractor import WordExtractor

__all__ = [
    "AnalysisError",
    "ImageAnalysis",
    "ImageAnalyzer",
    "FileScanner",
    "LocalFile",
    "normalize_name",
    "Reconciler",
    "SyncError",
    "SyncStats",
    "sync_folder",
    "GCSRemoteStore",
    "RemoteObject",
    "RemoteStore",
    "RemoteStoreError",
    "WordExtractor",
]
