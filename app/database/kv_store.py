"""
Durable key-value store for client-side answer storage

- String keys and string values, persisted as one JSON object on disk
- Every operation reads the file, so stores opened on the same path see each other's writes
- Writes are read-modify-write under a lock shared by all stores on that path
"""
import json
import os
from pathlib import Path
from threading import Lock, RLock
from typing import Dict, List, Optional

_registry_lock = RLock()
_path_locks: Dict[Path, Lock] = {}
_stores: Dict[Path, "JsonFileKeyValueStore"] = {}


def _lock_for(path: Path) -> Lock:
    with _registry_lock:
        if path not in _path_locks:
            _path_locks[path] = Lock()
        return _path_locks[path]


class JsonFileKeyValueStore:
    """
    Key-value store backed by a single JSON file
    """
    def __init__(self, filepath: str):
        self.path = Path(filepath).resolve()
        self._lock = _lock_for(self.path)

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return {str(k): str(v) for k, v in raw.items()} if isinstance(raw, dict) else {}

    def _write(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        """Get value for key, None if absent"""
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str):
        """Set value for key and persist"""
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str):
        """Remove key if present and persist"""
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with prefix"""
        with self._lock:
            return sorted(k for k in self._read() if k.startswith(prefix))


def get_key_value_store(filepath: str) -> JsonFileKeyValueStore:
    """Shared store for a file path, created on first use"""
    path = Path(filepath).resolve()
    with _registry_lock:
        if path not in _stores:
            _stores[path] = JsonFileKeyValueStore(str(path))
        return _stores[path]
