"""
storage.kv
~~~~~~~~~~

A tiny persisted key-value store: one JSON object on disk mapping string
keys to string values. Every call re-reads or rewrites the whole file, so
several contexts pointing at the same path see each other's writes on
their next read.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStorage:
    def __init__(self, path, probe_key: str = "__meditrack_probe__"):
        self.path = Path(path)
        self.probe_key = probe_key

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def is_available(self) -> bool:
        """Write and remove the probe key; False when either step fails."""
        try:
            self.set_item(self.probe_key, self.probe_key)
            self.remove_item(self.probe_key)
        except StorageError as e:
            logger.warning("Persisted storage unavailable: %s", e)
            return False
        return True
