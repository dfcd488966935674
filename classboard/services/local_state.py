"""
Per-session key/value state persisted on the client.

Holds the cached identity (``userIp``, ``ipExpiration``) and the local daily
counters (``messageCountDate``, ``messageCount``, ``lastUploadDate``,
``uploadedImagesCount``). Values are stored as strings.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

USER_IP = "userIp"
IP_EXPIRATION = "ipExpiration"
MESSAGE_COUNT_DATE = "messageCountDate"
MESSAGE_COUNT = "messageCount"
UPLOADED_IMAGES_COUNT = "uploadedImagesCount"
LAST_UPLOAD_DATE = "lastUploadDate"


class LocalState:
    """String key/value store, written through to a JSON file when a path is given."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._values: Dict[str, str] = {}
        if self.path is not None:
            self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable local state at {self.path}: {e}")
            return
        if isinstance(raw, dict):
            self._values = {str(k): str(v) for k, v in raw.items()}

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def get_int(self, key: str, default: int = 0) -> int:
        """Read an integer value; missing or malformed values give the default."""
        value = self._values.get(key)
        try:
            return int(value) if value is not None else default
        except ValueError:
            return default

    def set_item(self, key: str, value: Union[str, int]) -> None:
        self._values[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._values.clear()
        self._flush()
