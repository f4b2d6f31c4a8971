import json
import logging
import os
import tempfile
import threading
from pathlib import Path


logger = logging.getLogger(__name__)


class JsonBlobStore:
    """
    Small synchronous key/value store kept in one JSON object file.

    Values are strings (callers serialize their own payloads). Every write
    replaces the whole file atomically so a crash never leaves half a file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _read_for_write(self) -> dict:
        try:
            return self._read_all()
        except (OSError, ValueError) as exc:
            logger.warning("Discarding unreadable store %s: %s", self.path, exc)
            return {}

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".gemini-desktop-tmp-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(data, indent=2))
            os.replace(tmp_name, str(self.path))
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)

    def get(self, key: str) -> str | None:
        """Raises OSError / ValueError when the file exists but cannot be read."""
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_for_write()
            data[key] = value
            self._write_all(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read_for_write()
            if key not in data:
                return
            del data[key]
            self._write_all(data)
