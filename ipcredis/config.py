import os
import tempfile
from typing import Optional

class Config:
    REDIS_HOST: str = os.getenv('IPC_REDIS_HOST', 'localhost')
    REDIS_PORT: int = int(os.getenv('IPC_REDIS_PORT', '6379'))
    REDIS_TIMEOUT: float = float(os.getenv('IPC_REDIS_TIMEOUT', '1.0'))
    REDIS_PASSWORD: Optional[str] = os.getenv('IPC_REDIS_PASSWORD') or None
    REDIS_DB: int = int(os.getenv('IPC_REDIS_DB', '0'))
    REDIS_PREFIX: str = os.getenv('IPC_REDIS_PREFIX', 'ipc:')
    REDIS_SERIALIZER: str = os.getenv('IPC_REDIS_SERIALIZER', 'pickle')

    # milliseconds
    MUTEX_TIMEOUT: int = int(os.getenv('IPC_MUTEX_TIMEOUT', '5000'))
    BLOCK_WAIT: int = int(os.getenv('IPC_BLOCK_WAIT', '20'))

    # seconds
    DOWN_LOCK_EXPIRATION: int = int(os.getenv('IPC_DOWN_LOCK_EXPIRATION', '30'))
    DOWN_LOCK_FILE: str = os.getenv(
        'IPC_DOWN_LOCK_FILE',
        os.path.join(tempfile.gettempdir(), 'ipcredis-down.lock')
    )

config = Config()
