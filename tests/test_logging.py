import logging

from templatehub.core.logging import TrackIdFilter, bind_track_id, get_track_id, reset_track_id


def make_record() -> logging.LogRecord:
    return logging.LogRecord("templatehub", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_uses_placeholder_without_track_id():
    record = make_record()

    assert TrackIdFilter().filter(record) is True
    assert record.track_id == "-"


def test_bound_track_id_is_attached_and_reset():
    token = bind_track_id("req-1")
    try:
        record = make_record()
        TrackIdFilter().filter(record)
        assert record.track_id == "req-1"
    finally:
        reset_track_id(token)

    assert get_track_id() is None


def test_bind_generates_id_when_missing():
    token = bind_track_id()
    try:
        assert get_track_id()
    finally:
        reset_track_id(token)
