import io
from datetime import datetime

import pytest
from PIL import Image as PILImage

from db import database
from db.operations import ImageRepository
from wallsync.analyzer import ImageAnalyzer
from wallsync.fingerprint import fingerprint
from wallsync.remote_store import RemoteObject, RemoteStore, RemoteStoreError


def make_image_bytes(size=(32, 24), color=(255, 0, 0), fmt="PNG") -> bytes:
    img = PILImage.new("RGB", size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class InMemoryRemoteStore(RemoteStore):
    """Bucket fake that records every mutation."""

    def __init__(self):
        self.objects: dict[str, RemoteObject] = {}
        self.data: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.deletes: list[str] = []
        self.fail_uploads: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.fail_listing = False

    def add(self, key: str, data: bytes, created: datetime | None = None) -> None:
        self.objects[key] = RemoteObject(
            key=key,
            checksum=fingerprint(data),
            size=len(data),
            created=created or datetime(2024, 1, 1),
            updated=created or datetime(2024, 1, 1),
        )
        self.data[key] = data

    def list_all(self) -> list[RemoteObject]:
        if self.fail_listing:
            raise RemoteStoreError("listing unavailable")
        return list(self.objects.values())

    def fingerprint_of(self, key: str) -> int | None:
        obj = self.objects.get(key)
        return obj.checksum if obj else None

    def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        if key in self.fail_uploads:
            raise RemoteStoreError(f"upload of {key} failed")
        self.uploads.append(key)
        self.add(key, data, created=datetime(2024, 6, 1))

    def delete(self, key: str) -> None:
        if key in self.fail_deletes:
            raise RemoteStoreError(f"delete of {key} failed")
        self.deletes.append(key)
        self.objects.pop(key, None)
        self.data.pop(key, None)


class StubWordExtractor:
    def __init__(self, words=None, error: Exception | None = None):
        self.words = ["mountain", "sunset"] if words is None else words
        self.error = error
        self.calls = 0

    def extract(self, data: bytes, mime_type: str) -> list[str]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.words)


class CountingAnalyzer(ImageAnalyzer):
    def __init__(self, word_extractor=None):
        super().__init__(word_extractor=word_extractor)
        self.calls = 0

    def analyze(self, data, format_hint):
        self.calls += 1
        return super().analyze(data, format_hint)


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Points the global engine at a fresh SQLite file."""
    path = tmp_path / "wallpapers.db"
    monkeypatch.setenv("WALLPAPER_DB_PATH", str(path))
    database.dispose_engine()
    yield path
    database.dispose_engine()


@pytest.fixture
def repository(db_path):
    assert database.init_db()
    return ImageRepository()


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def word_extractor():
    return StubWordExtractor()


@pytest.fixture
def analyzer(word_extractor):
    return CountingAnalyzer(word_extractor=word_extractor)


@pytest.fixture
def image_bytes():
    return make_image_bytes
