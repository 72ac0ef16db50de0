"""
YAML file persistence for engine snapshots.
"""
import os
import logging

import yaml
from filelock import FileLock

from tourney.models import Snapshot
from tourney.serialization import snapshot_from_dict, to_dict

logger = logging.getLogger(__name__)


class YamlSnapshotStore:
    """Load and save one snapshot file; writes are serialised with a lock file beside it."""

    def __init__(self, path: str, timeout: int = 10):
        self.path = path
        self.lock = FileLock(path + '.lock', timeout=timeout)

    def load(self) -> Snapshot:
        """Load the snapshot, or an empty one when the file is missing or empty."""
        if not os.path.exists(self.path):
            return Snapshot()
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return snapshot_from_dict(data)

    def _ensure_directory(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _write(self, snapshot: Snapshot):
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.dump(to_dict(snapshot), f, default_flow_style=False, sort_keys=False)
        logger.debug("Saved %d tournament(s) to %s", len(snapshot.tournaments), self.path)

    def save(self, snapshot: Snapshot):
        """Write the snapshot as plain YAML."""
        self._ensure_directory()
        with self.lock:
            self._write(snapshot)

    def update(self, transform) -> Snapshot:
        """Load, transform and save while holding the lock; returns the new snapshot.

        If ``transform`` raises, the file is left untouched.
        """
        self._ensure_directory()
        with self.lock:
            snapshot = transform(self.load())
            self._write(snapshot)
        return snapshot
