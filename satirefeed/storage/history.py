"""
Processed Link History
======================

Remembers which article links were already turned into posts so a feed can
be re-run without re-processing old items. Persisted as a JSON array when a
file path is configured, otherwise kept in memory for the run.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Set, Union

from ..utils.logging import get_logger_for_component


class ProcessedLinkStore:
    """Set of processed article links with optional JSON file persistence."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """Initialize link store.

        Args:
            path: JSON file to persist links in (None keeps them in memory)
        """
        self.path = Path(path) if path else None
        self.logger = get_logger_for_component("history")
        self._links: Set[str] = self._load()

    def _load(self) -> Set[str]:
        if not self.path or not self.path.exists():
            return set()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not read processed links from {self.path}, starting fresh: {e}")
            return set()

        if not isinstance(data, list):
            self.logger.warning(f"Processed links file {self.path} is not a list, starting fresh")
            return set()

        return {link for link in data if isinstance(link, str) and link}

    def _save(self) -> None:
        if not self.path:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp file first so a crash never leaves a truncated file
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(sorted(self._links), f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def has(self, link: str) -> bool:
        """Whether ``link`` was already processed."""
        return bool(link) and link in self._links

    def add(self, link: str) -> None:
        """Record ``link`` as processed. Empty links are ignored."""
        if not link or link in self._links:
            return
        self._links.add(link)
        self._save()

    def clear(self) -> int:
        """Forget all processed links.

        Returns:
            Number of links removed
        """
        count = len(self._links)
        self._links.clear()
        if self.path and self.path.exists():
            self.path.unlink()
        self.logger.info(f"Cleared {count} processed links")
        return count

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, link: str) -> bool:
        return self.has(link)
