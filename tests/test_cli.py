"""Tests for the ipcredis admin CLI."""

import time
import pytest
import fakeredis
from click.testing import CliRunner
from unittest.mock import patch

from ipcredis.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def lock_file(tmp_path):
    return str(tmp_path / "down.lock")


@pytest.fixture
def fake_redis_factory(fake_server):
    with patch("ipcredis.store.redis.Redis", new=lambda **_: fakeredis.FakeRedis(server=fake_server)):
        yield


def invoke(runner, lock_file, *args, **kwargs):
    return runner.invoke(
        cli, ["--prefix", "test:", "--down-lock-file", lock_file, *args], obj={}, **kwargs
    )


def test_set_then_get(runner, lock_file, fake_redis_factory, fake_redis):
    result = invoke(runner, lock_file, "set", "device-mapping", "alice", "--id", "4")
    assert result.exit_code == 0, result.output
    assert "Stored device-mapping:4" in result.output
    assert fake_redis.exists("test:device-mapping:4") == 1
    # the set command releases its mutex
    assert fake_redis.exists("test:device-mappingMX") == 0

    result = invoke(runner, lock_file, "get", "device-mapping", "--id", "4")
    assert result.exit_code == 0, result.output
    assert "alice" in result.output


def test_get_missing_slot(runner, lock_file, fake_redis_factory):
    result = invoke(runner, lock_file, "get", "device-mapping")
    assert result.exit_code == 0
    assert "No data in device-mapping:2" in result.output


def test_get_reserved_id_fails(runner, lock_file, fake_redis_factory):
    result = invoke(runner, lock_file, "get", "device-mapping", "--id", "1")
    assert result.exit_code == 1
    assert "reserved" in result.output


def test_get_while_marked_down(runner, lock_file, fake_redis_factory):
    with open(lock_file, "w") as f:
        f.write(str(time.time() + 60))

    result = invoke(runner, lock_file, "get", "device-mapping")
    assert result.exit_code == 1
    assert "marked down" in result.output


def test_status_shows_down_marker(runner, lock_file, fake_redis_factory):
    with open(lock_file, "w") as f:
        f.write(str(time.time() + 60))

    result = invoke(runner, lock_file, "status")
    assert result.exit_code == 0, result.output
    assert "Marked down until" in result.output
    assert "yes" in result.output


def test_clear_down(runner, lock_file):
    with open(lock_file, "w") as f:
        f.write(str(time.time() + 60))

    result = invoke(runner, lock_file, "clear-down")
    assert result.exit_code == 0
    assert "Removed" in result.output

    result = invoke(runner, lock_file, "clear-down")
    assert "No down marker" in result.output


def test_clean_narrow(runner, lock_file, fake_redis_factory, fake_redis):
    fake_redis.set("test:A:2", b"1")
    fake_redis.set("test:B:2", b"1")

    result = invoke(runner, lock_file, "clean", "--type", "A", "--narrow")
    assert result.exit_code == 0, result.output
    assert fake_redis.exists("test:A:2") == 0
    assert fake_redis.exists("test:B:2") == 1


def test_clean_narrow_requires_type(runner, lock_file):
    result = invoke(runner, lock_file, "clean", "--narrow")
    assert result.exit_code == 2


def test_reinit_requires_confirmation(runner, lock_file, fake_redis_factory, fake_redis):
    fake_redis.set("keep", b"1")

    result = invoke(runner, lock_file, "reinit", input="n\n")
    assert result.exit_code == 1
    assert fake_redis.exists("keep") == 1

    result = invoke(runner, lock_file, "reinit", "--yes")
    assert result.exit_code == 0, result.output
    assert fake_redis.dbsize() == 0
