"""File-backed snapshot storage, usable as the store's `on_change` hook.

    snapshots = JsonSnapshotFile("marketplace.json")
    store = MarketplaceStore(on_change=snapshots)
    store.bootstrap(snapshots.load())
"""

import json
import os
from pathlib import Path

from marketplace.utils.logging import logger


class JsonSnapshotFile:
    def __init__(self, path):
        self.path = Path(path)

    def load(self):
        """The stored snapshot, or None when nothing has been saved yet."""
        if not self.path.exists():
            return None
        with self.path.open(encoding="utf-8") as handle:
            return json.load(handle)

    def save(self, snapshot):
        """Write `snapshot` atomically: a temporary file replaces the old one."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_name(f"{self.path.name}.tmp")
        with staging.open("w", encoding="utf-8") as handle:
            json.dump(snapshot, handle, indent=2, sort_keys=True, default=str)
        os.replace(staging, self.path)
        logger.debug("Saved snapshot", path=str(self.path))

    __call__ = save
