"""Redis store client with transparent value serialization."""

import json
import logging
import pickle
from typing import Any, Callable, List, Optional

import redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from .config import config
from .exceptions import ConfigurationError, SerializationError, StoreUnavailableError

logger = logging.getLogger(__name__)

SERIALIZERS = ('pickle', 'json', 'none')

# errors pickle and json raise on values they cannot handle
DUMP_ERRORS = (pickle.PicklingError, AttributeError, TypeError, ValueError, RecursionError)
LOAD_ERRORS = (pickle.UnpicklingError, AttributeError, EOFError, ImportError, IndexError,
               TypeError, ValueError)


def glob_escape(pattern: str) -> str:
    """Escape Redis glob metacharacters so ``pattern`` matches literally."""
    for char in '\\*?[]':
        pattern = pattern.replace(char, '\\' + char)
    return pattern


class StoreClient:
    """Connection to the Redis server backing mutexes and data slots.

    All keys are transparently namespaced with ``prefix``. Values go through
    the configured serializer on the way in and out:

    - ``pickle``: any picklable Python object (default)
    - ``json``: JSON-compatible values
    - ``none``: raw strings; values that are not valid UTF-8 come back as bytes

    ``pickle`` trusts the server: anyone able to write keys under the prefix
    can run code in every process reading them. Use ``json`` or ``none`` when
    Redis is shared with less trusted clients.

    Values that cannot be encoded or decoded raise ``SerializationError``.

    The underlying ``redis.Redis`` is created lazily by ``connect()``, which
    authenticates, selects the db and pings. ``connect()`` may be called again
    to drop the current connection and dial a fresh one.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        password: Optional[str] = None,
        db: Optional[int] = None,
        prefix: Optional[str] = None,
        serializer: Optional[str] = None,
        client_factory: Optional[Callable[..., redis.Redis]] = None
    ):
        self.host = host if host is not None else config.REDIS_HOST
        self.port = port if port is not None else config.REDIS_PORT
        self.timeout = timeout if timeout is not None else config.REDIS_TIMEOUT
        self.password = password if password is not None else config.REDIS_PASSWORD
        self.db = db if db is not None else config.REDIS_DB
        self.prefix = prefix if prefix is not None else config.REDIS_PREFIX
        self.serializer = serializer if serializer is not None else config.REDIS_SERIALIZER
        self.client_factory = client_factory or redis.Redis
        self._redis: Optional[redis.Redis] = None

        if self.serializer not in SERIALIZERS:
            raise ConfigurationError(
                f"Unknown serializer '{self.serializer}', expected one of {', '.join(SERIALIZERS)}"
            )

    @property
    def connected(self) -> bool:
        return self._redis is not None

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            raise StoreUnavailableError(f"Not connected to Redis at {self.host}:{self.port}")
        return self._redis

    def connect(self) -> None:
        """(Re)establish the Redis connection: auth, select db and ping."""
        self.close()
        try:
            client = self.client_factory(
                host=self.host,
                port=self.port,
                db=self.db,
                password=self.password,
                socket_connect_timeout=self.timeout,
                socket_timeout=self.timeout,
                decode_responses=False
            )
            client.ping()
        except (ConnectionError, TimeoutError) as e:
            raise StoreUnavailableError(
                f"Failed to connect to Redis at {self.host}:{self.port}: {e}"
            ) from e
        except RedisError as e:
            # auth and select failures surface here
            raise StoreUnavailableError(
                f"Redis at {self.host}:{self.port} rejected the connection: {e}"
            ) from e
        self._redis = client
        logger.info(f"Connected to Redis at {self.host}:{self.port} db {self.db}")

    def close(self) -> None:
        if self._redis is None:
            return
        try:
            self._redis.close()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
        self._redis = None

    def _key(self, key: str) -> str:
        return self.prefix + key

    def _dump(self, value: Any) -> bytes:
        try:
            if self.serializer == 'pickle':
                return pickle.dumps(value)
            if self.serializer == 'json':
                return json.dumps(value).encode()
        except DUMP_ERRORS as e:
            raise SerializationError(
                f"Cannot encode {type(value).__name__} with {self.serializer}: {e}"
            ) from e
        if isinstance(value, bytes):
            return value
        return str(value).encode()

    def _load(self, raw: Optional[bytes]) -> Any:
        if raw is None:
            return None
        if self.serializer == 'none':
            try:
                return raw.decode()
            except UnicodeDecodeError:
                return raw
        try:
            if self.serializer == 'pickle':
                return pickle.loads(raw)
            return json.loads(raw)
        except LOAD_ERRORS as e:
            raise SerializationError(f"Cannot decode stored value with {self.serializer}: {e}") from e

    def get(self, key: str) -> Any:
        return self._load(self.redis.get(self._key(key)))

    def set_if_absent(self, key: str, value: Any, ttl_ms: int) -> bool:
        """Atomically create ``key`` with a TTL; False if it already exists."""
        return bool(self.redis.set(self._key(key), self._dump(value), nx=True, px=ttl_ms))

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> bool:
        return bool(self.redis.set(self._key(key), self._dump(value), px=ttl_ms))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return self.redis.delete(*(self._key(k) for k in keys))

    def exists(self, key: str) -> int:
        return self.redis.exists(self._key(key))

    def scan_keys(self, pattern: str = "") -> List[str]:
        """Return keys (without the store prefix) starting with ``pattern``.

        ``pattern`` and the prefix are matched literally, not as globs.
        """
        keys = []
        for raw in self.redis.scan_iter(match=glob_escape(self._key(pattern)) + "*"):
            name = raw.decode() if isinstance(raw, bytes) else raw
            keys.append(name[len(self.prefix):])
        return keys

    def flush_namespace(self) -> bool:
        return bool(self.redis.flushdb())

    def ping(self) -> bool:
        return bool(self.redis.ping())
