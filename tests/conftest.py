import pytest
import fakeredis

from ipcredis.down_marker import DownMarkerFile
from ipcredis.guard import AvailabilityGuard
from ipcredis.mutex import MutexCoordinator
from ipcredis.slots import DataSlots
from ipcredis.store import StoreClient

PREFIX = "test:"


def make_store(server, **kwargs):
    """StoreClient talking to a fakeredis server shared by all 'processes'."""
    kwargs.setdefault("prefix", PREFIX)
    store = StoreClient(
        client_factory=lambda **_: fakeredis.FakeRedis(server=server),
        **kwargs
    )
    store.connect()
    return store


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server):
    """Raw client on the same server, for inspecting stored keys."""
    return fakeredis.FakeRedis(server=fake_server)


@pytest.fixture
def store(fake_server):
    return make_store(fake_server)


@pytest.fixture
def marker(tmp_path):
    return DownMarkerFile(tmp_path / "ipc-down.lock")


@pytest.fixture
def guard(store, marker):
    return AvailabilityGuard(store, marker, down_lock_expiration=30)


@pytest.fixture
def coordinator(store, guard):
    return MutexCoordinator(store, guard, mutex_timeout=200, block_wait=20)


@pytest.fixture
def slots(store, guard):
    return DataSlots(store, guard)
