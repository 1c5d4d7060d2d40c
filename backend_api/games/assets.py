from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Iterable, List, Optional

from django.core.files.storage import Storage, default_storage
from django.utils.text import get_valid_filename

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class AssetBatch:
    """Stores the uploads of one request under game/<kind>/<game_id>/.

    Used as a context manager, every file stored inside the block is removed
    again if the block raises, so a failed create or update never leaves
    orphaned files behind. The exception is re-raised unchanged.

    Example:
        with AssetBatch("anagram", game_id) as batch:
            payload = handler.build(data, files, batch.store)
            Game.objects.create(..., payload=payload)
    """

    def __init__(self, kind: str, game_id: Any, storage: Optional[Storage] = None) -> None:
        self.prefix = f"game/{kind}/{game_id}"
        self.storage = storage or default_storage
        self.stored: List[str] = []

    def store(self, upload: Any) -> str:
        """Save one uploaded file and return its storage path."""
        original = os.path.basename(getattr(upload, "name", "") or "") or "upload"
        name = f"{self.prefix}/{uuid.uuid4().hex[:12]}_{get_valid_filename(original)}"
        path = self.storage.save(name, upload)
        self.stored.append(path)
        return path

    def __enter__(self) -> "AssetBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self.stored:
            logger.warning("Rolling back %d stored asset(s) under %s: %s", len(self.stored), self.prefix, exc)
            remove_assets(self.stored, storage=self.storage)
            self.stored = []
        return False


# PUBLIC_INTERFACE
def remove_assets(paths: Iterable[str], storage: Optional[Storage] = None) -> None:
    """Delete each path from storage. Storage errors propagate to the caller."""
    storage = storage or default_storage
    for path in paths:
        if not path:
            continue
        storage.delete(path)
        logger.info("Removed asset %s", path)
