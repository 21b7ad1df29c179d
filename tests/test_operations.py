from datetime import datetime, timedelta, timezone

from db.models import Image


def make_image(filename="sky.jpg", **overrides):
    values = dict(
        filename=filename,
        date_added=datetime(2024, 1, 1, 12, 0),
        last_modified=datetime(2024, 1, 2, 12, 0),
        width=1920,
        height=1080,
        pixel_density=1920 * 1080 / 1_000_000.0,
        file_format="jpeg",
        colors=["#112233", "#aabbcc"],
        words=["mountain", "sunset"],
        processed_at=datetime(2024, 1, 3, 12, 0),
    )
    values.update(overrides)
    return Image(**values)


def test_upsert_then_get_round_trip(repository):
    repository.upsert(make_image())

    image = repository.get_by_filename("sky.jpg")
    assert image is not None
    data = image.to_dict()
    del data["id"]
    assert data == {
        "filename": "sky.jpg",
        "date_added": "2024-01-01T12:00:00",
        "last_modified": "2024-01-02T12:00:00",
        "width": 1920,
        "height": 1080,
        "pixel_density": 2.0736,
        "file_format": "jpeg",
        "colors": ["#112233", "#aabbcc"],
        "words": ["mountain", "sunset"],
        "processed_at": "2024-01-03T12:00:00",
    }
    assert image.resolution == "1920x1080"


def test_empty_words_read_back_as_empty_list(repository):
    repository.upsert(make_image(words=[], colors=[]))

    image = repository.get_by_filename("sky.jpg")
    assert image.words == []
    assert image.colors == []


def test_upsert_conflict_keeps_date_added(repository):
    repository.upsert(make_image())
    repository.upsert(make_image(
        date_added=datetime(2030, 1, 1),
        width=800,
        height=600,
        words=["forest"],
    ))

    image = repository.get_by_filename("sky.jpg")
    assert repository.count() == 1
    assert image.date_added == datetime(2024, 1, 1, 12, 0)
    assert (image.width, image.height) == (800, 600)
    assert image.words == ["forest"]


def test_upsert_accepts_aware_datetimes(repository):
    aware = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    repository.upsert(make_image(processed_at=aware))

    assert repository.get_by_filename("sky.jpg").processed_at == datetime(2024, 5, 1, 12, 0)


def test_ensure_bare_record_creates_unprocessed_record(repository):
    repository.ensure_bare_record("new.png", datetime(2024, 2, 1), datetime(2024, 2, 2))

    image = repository.get_by_filename("new.png")
    assert image.date_added == datetime(2024, 2, 1)
    assert image.last_modified == datetime(2024, 2, 2)
    assert image.processed_at is None
    assert image.words == []
    assert not repository.is_processed("new.png")


def test_ensure_bare_record_refreshes_unprocessed_modification_time(repository):
    repository.ensure_bare_record("new.png", datetime(2024, 2, 1), datetime(2024, 2, 2))
    repository.ensure_bare_record("new.png", datetime(2025, 1, 1), datetime(2024, 3, 3))

    image = repository.get_by_filename("new.png")
    assert image.date_added == datetime(2024, 2, 1)
    assert image.last_modified == datetime(2024, 3, 3)


def test_ensure_bare_record_leaves_processed_record_alone(repository):
    repository.upsert(make_image())
    repository.ensure_bare_record("sky.jpg", datetime(2030, 1, 1), datetime(2030, 1, 1))

    image = repository.get_by_filename("sky.jpg")
    assert image.last_modified == datetime(2024, 1, 2, 12, 0)
    assert image.words == ["mountain", "sunset"]
    assert repository.is_processed("sky.jpg")


def test_ensure_bare_record_without_created_uses_default(repository):
    repository.ensure_bare_record("remote.jpg", None, None)

    assert repository.get_by_filename("remote.jpg").date_added is not None


def test_is_processed_unknown_file(repository):
    assert not repository.is_processed("missing.jpg")


def test_set_words(repository):
    repository.upsert(make_image())

    assert repository.set_words("sky.jpg", ["lake"])
    assert repository.get_by_filename("sky.jpg").words == ["lake"]
    assert not repository.set_words("missing.jpg", ["lake"])


def test_delete(repository):
    repository.upsert(make_image())

    assert repository.delete("sky.jpg")
    assert repository.get_by_filename("sky.jpg") is None
    assert not repository.delete("sky.jpg")


def test_get_all_newest_first(repository):
    repository.upsert(make_image("old.jpg", date_added=datetime(2020, 1, 1)))
    repository.upsert(make_image("new.jpg", date_added=datetime(2024, 1, 1)))
    repository.upsert(make_image("mid.jpg", date_added=datetime(2022, 1, 1)))

    assert [i.filename for i in repository.get_all()] == ["new.jpg", "mid.jpg", "old.jpg"]


def test_search_matches_every_field(repository):
    repository.upsert(make_image(
        "beach.png", file_format="png", width=3840, height=2160,
        colors=["#ff8800"], words=["ocean", "palm tree"],
        date_added=datetime(2024, 3, 1),
    ))
    repository.upsert(make_image(
        "forest.jpg", words=["pine", "fog"], colors=["#224422"],
        date_added=datetime(2024, 2, 1),
    ))

    def names(query):
        return [i.filename for i in repository.search(query)]

    assert names("palm") == ["beach.png"]
    assert names("FF88") == ["beach.png"]
    assert names("forest") == ["forest.jpg"]
    assert names("png") == ["beach.png"]
    assert names("1920x1080") == ["forest.jpg"]
    assert names("3840x") == ["beach.png"]
    assert names("  Fog ") == ["forest.jpg"]
    assert names("desert") == []


def test_search_blank_query_returns_everything_newest_first(repository):
    repository.upsert(make_image("a.jpg", date_added=datetime(2020, 1, 1)))
    repository.upsert(make_image("b.jpg", date_added=datetime(2021, 1, 1)))

    assert [i.filename for i in repository.search("")] == ["b.jpg", "a.jpg"]
    assert [i.filename for i in repository.search("   ")] == ["b.jpg", "a.jpg"]


def test_search_treats_wildcards_literally(repository):
    repository.upsert(make_image("a.jpg", words=["100% cotton"]))
    repository.upsert(make_image("b.jpg", words=["plain"]))

    assert [i.filename for i in repository.search("%")] == ["a.jpg"]
    assert repository.search("_") == []


def test_counts(repository):
    repository.upsert(make_image("done.jpg"))
    repository.ensure_bare_record("todo.jpg", datetime(2024, 1, 1), None)

    assert repository.count() == 2
    assert repository.count_processed() == 1
