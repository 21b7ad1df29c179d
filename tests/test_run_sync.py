import sys

import pytest

import run_sync
from db.operations import ImageRepository

from conftest import InMemoryRemoteStore, make_image_bytes


@pytest.fixture
def fake_store(monkeypatch):
    store = InMemoryRemoteStore()
    store.bucket_name = "test-bucket"
    monkeypatch.setattr(run_sync, "GCSRemoteStore", lambda bucket_name=None: store)
    return store


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["run_sync.py", *argv])
    return run_sync.main()


def test_cli_syncs_folder(tmp_path, monkeypatch, fake_store, db_path, capsys):
    folder = tmp_path / "walls"
    folder.mkdir()
    (folder / "Blue Sky.PNG").write_bytes(make_image_bytes(color=(0, 0, 255)))

    code = run_cli(monkeypatch, str(folder), "--no-words", "--db", str(db_path),
                   "--refresh-probability", "0")

    assert code == 0
    assert fake_store.uploads == ["bluesky.png"]
    out = capsys.readouterr().out
    assert "Bucket: test-bucket" in out
    assert "Sync Complete" in out

    image = ImageRepository().get_by_filename("bluesky.png")
    assert image.colors == ["#0000ff"]
    assert image.words == []


def test_cli_fatal_error_exit_code(tmp_path, monkeypatch, fake_store, db_path):
    fake_store.fail_listing = True
    folder = tmp_path / "walls"
    folder.mkdir()

    assert run_cli(monkeypatch, str(folder), "--no-words", "--db", str(db_path)) == 1


def test_cli_rejects_bad_probability(tmp_path, monkeypatch):
    with pytest.raises(SystemExit):
        run_cli(monkeypatch, str(tmp_path), "--refresh-probability", "1.5")


def test_cli_requires_path(monkeypatch):
    monkeypatch.delenv("WALLPAPER_DIR", raising=False)
    monkeypatch.setattr(run_sync, "load_dotenv", lambda: None)

    with pytest.raises(SystemExit):
        run_cli(monkeypatch)
