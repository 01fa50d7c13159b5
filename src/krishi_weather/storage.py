import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from krishi_weather.config import Config

logger = logging.getLogger("krishi_weather.storage")

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageBackend:
    """Key/value store holding JSON-serialisable values"""

    name: str

    def get_json(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set_json(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(StorageBackend):
    """Process-local store, values are kept serialised so callers never share objects"""

    name = "memory"

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_json(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, separators=(",", ":"))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(StorageBackend):
    """One ``<key>.json`` file per key under a directory"""

    name = "file"

    def __init__(self, directory: Path):
        self.directory = Path(directory).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_json(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def set_json(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(value, separators=(",", ":")), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def storage_from_config(settings: Config) -> StorageBackend:
    """File storage when a storage directory is configured, memory otherwise"""
    if settings.storage_dir:
        logger.info(f"Using file storage in {settings.storage_dir}")
        return JsonFileStorage(Path(settings.storage_dir))
    logger.info("Using in-memory storage")
    return MemoryStorage()
