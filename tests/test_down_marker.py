"""Tests for the persisted down marker."""

import time

from ipcredis.down_marker import DownMarkerFile


def test_missing_marker_reads_zero(marker):
    assert marker.load_down_until() == 0


def test_store_and_load(marker):
    down_until = time.time() + 60
    assert marker.store_down_until(down_until) is True
    assert marker.load_down_until() == down_until


def test_corrupt_marker_is_discarded(marker):
    marker.path.write_text("not a timestamp")

    assert marker.load_down_until() == 0
    assert not marker.path.exists()


def test_clear(marker):
    marker.store_down_until(123.0)

    assert marker.clear() is True
    assert marker.clear() is False


def test_unwritable_marker_is_not_fatal(tmp_path):
    """Failing to persist should be reported, not raised."""
    marker = DownMarkerFile(tmp_path / "missing-dir" / "down.lock")
    assert marker.store_down_until(time.time() + 30) is False
