"""
Persisted "store is down until T" marker.

Shared between all processes on a host so a freshly started worker knows
Redis was recently unreachable and does not dial it again right away.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import config

logger = logging.getLogger(__name__)


class DownMarkerFile:
    """Down marker stored as a single epoch timestamp in a local file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path if path is not None else config.DOWN_LOCK_FILE)

    def load_down_until(self) -> float:
        """Return the stored timestamp, or 0 if there is no usable marker."""
        try:
            content = self.path.read_text().strip()
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.warning(f"Could not read down marker {self.path}: {e}")
            return 0

        try:
            return float(content)
        except ValueError:
            logger.warning(f"Discarding corrupt down marker {self.path}: {content!r}")
            self.clear()
            return 0

    def store_down_until(self, down_until: float) -> bool:
        try:
            self.path.write_text(str(down_until))
        except OSError as e:
            logger.warning(f"Could not write down marker {self.path}: {e}")
            return False
        return True

    def clear(self) -> bool:
        """Remove the marker. Returns True if a file was deleted."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove down marker {self.path}: {e}")
            return False
        return True
