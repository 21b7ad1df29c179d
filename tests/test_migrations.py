from datetime import datetime

from sqlalchemy import inspect, text

from db import database
from db.migrations import clean_stored_words, migrate_legacy_colors, run_migrations
from db.models import Image
from db.operations import ImageRepository

LEGACY_SCHEMA = """
CREATE TABLE images (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filename TEXT NOT NULL UNIQUE,
    date_added DATETIME NOT NULL,
    last_modified DATETIME,
    width INTEGER,
    height INTEGER,
    pixel_density REAL,
    file_format TEXT,
    color1 TEXT,
    color2 TEXT,
    color3 TEXT,
    words TEXT,
    processed_at DATETIME
)
"""


def create_legacy_table(engine):
    with engine.begin() as conn:
        conn.execute(text(LEGACY_SCHEMA))
        conn.execute(text("CREATE INDEX idx_colors ON images (color1, color2, color3)"))
        conn.execute(text(
            "INSERT INTO images (filename, date_added, width, height, color1, color2, color3, words) "
            "VALUES ('sky.jpg', '2024-01-02 03:04:05', 1920, 1080, '#111111', '#222222', NULL, "
            "'[\"sunset\"]')"
        ))
        conn.execute(text(
            "INSERT INTO images (filename, date_added) VALUES ('bare.jpg', '2024-01-01 00:00:00')"
        ))


def test_migrate_legacy_colors(db_path):
    engine = database.get_engine()
    create_legacy_table(engine)

    assert migrate_legacy_colors(engine) == 2

    columns = {c["name"] for c in inspect(engine).get_columns("images")}
    assert "colors" in columns
    assert not columns & {"color1", "color2", "color3"}

    repository = ImageRepository()
    sky = repository.get_by_filename("sky.jpg")
    assert sky.colors == ["#111111", "#222222"]
    assert sky.words == ["sunset"]
    assert sky.date_added == datetime(2024, 1, 2, 3, 4, 5)
    assert repository.get_by_filename("bare.jpg").colors == []


def test_migrate_legacy_colors_is_a_no_op_on_current_schema(repository):
    assert migrate_legacy_colors() == 0


def test_migrate_legacy_colors_without_table(db_path):
    assert migrate_legacy_colors() == 0


def test_clean_stored_words(repository):
    repository.upsert(Image(
        filename="sky.jpg",
        date_added=datetime(2024, 1, 1),
        words=["Mountain", "no text visible", "café", "mountain", "lake"],
        processed_at=datetime(2024, 1, 1),
    ))
    repository.upsert(Image(
        filename="clean.jpg",
        date_added=datetime(2024, 1, 1),
        words=["forest"],
        processed_at=datetime(2024, 1, 1),
    ))

    assert clean_stored_words(repository) == 1
    assert repository.get_by_filename("sky.jpg").words == ["mountain", "lake"]
    assert repository.get_by_filename("clean.jpg").words == ["forest"]
    assert clean_stored_words(repository) == 0


def test_run_migrations_reports_each_step(repository):
    assert run_migrations() == {"legacy_colors": 0, "cleaned_words": 0}
