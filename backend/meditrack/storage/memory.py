"""
storage.memory
~~~~~~~~~~~~~~

Append-only patient table used when the embedded engine is unavailable.
The whole table is mirrored to persisted storage as a JSON snapshot.
Snapshot failures are logged and the in-process copy stays authoritative.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class InMemoryStore:
    def __init__(self, storage, snapshot_key: str):
        self.storage = storage
        self.snapshot_key = snapshot_key
        self._records: List[Dict[str, Any]] = []
        self._last_id = 0

    @property
    def records(self) -> List[Dict[str, Any]]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def load_snapshot(self) -> bool:
        """Replace the in-process table with the persisted snapshot.

        Returns False (and keeps the current rows) when there is no snapshot
        or it cannot be read.
        """
        try:
            raw = self.storage.get_item(self.snapshot_key)
            if raw is None:
                return False
            rows = json.loads(raw)
        except (StorageError, ValueError) as e:
            logger.error("Error reading patient snapshot: %s", e)
            return False
        if not isinstance(rows, list):
            logger.error("Ignoring malformed patient snapshot under %r", self.snapshot_key)
            return False
        self._records = [row for row in rows if isinstance(row, dict)]
        self._last_id = max([self._last_id] + [self._row_id(row) for row in self._records])
        logger.debug("Loaded %d patients from snapshot", len(self._records))
        return True

    def save_snapshot(self) -> bool:
        try:
            self.storage.set_item(self.snapshot_key, json.dumps(self._records, default=str))
        except StorageError as e:
            logger.error("Error saving patient snapshot: %s", e)
            return False
        return True

    def append(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Assign id and timestamps, append, then persist the snapshot."""
        now = datetime.now(timezone.utc).isoformat()
        self._last_id += 1
        record = dict(fields)
        record["id"] = self._last_id
        record["created_at"] = now
        record["updated_at"] = now
        self._records.append(record)
        if self.save_snapshot():
            logger.info("Patient %s saved to in-memory storage and snapshot", record["id"])
        return dict(record)

    def newest_first(self) -> List[Dict[str, Any]]:
        rows = list(reversed(self._records))
        # stable sort keeps later appends first among equal timestamps
        rows.sort(key=lambda row: str(row.get("created_at") or ""), reverse=True)
        return rows

    @staticmethod
    def _row_id(row: Dict[str, Any]) -> int:
        try:
            return int(row.get("id") or 0)
        except (TypeError, ValueError):
            return 0
