"""Workspace file collector."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from filedep.models import DEFAULT_IGNORED_DIRECTORIES, EXTENSION_CLASSES, normalize_extension

logger = logging.getLogger(__name__)


class FileCollector:
    """Walk a workspace tree and collect files with a target extension."""

    def __init__(
        self,
        ignored_directories: list[str] | None = None,
        skip_hidden: bool = True,
    ):
        if ignored_directories is None:
            ignored_directories = list(DEFAULT_IGNORED_DIRECTORIES)
        self.ignored_directories = ignored_directories
        self.skip_hidden = skip_hidden

    def collect(self, root: Path | str, target_extensions: list[str] | set[str]) -> set[str]:
        """Return absolute paths of every file under root with a target extension.

        A directory that cannot be listed is logged and skipped; the rest of
        the tree is still collected.
        """
        wanted = {normalize_extension(ext) for ext in target_extensions}
        wanted.discard("")
        files: set[str] = set()
        if not wanted:
            return files

        root = os.path.abspath(root)
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_error):
            dirnames[:] = [d for d in dirnames if not self.should_skip(d)]
            for name in filenames:
                if os.path.splitext(name)[1].lower() in wanted:
                    full = os.path.join(dirpath, name)
                    if os.path.isfile(full):
                        files.add(full)
        return files

    def should_skip(self, dirname: str) -> bool:
        if self.skip_hidden and dirname.startswith("."):
            return True
        for pattern in self.ignored_directories:
            if fnmatch.fnmatch(dirname, pattern):
                return True
        return False

    def detect_extensions(self, root: Path | str) -> list[str]:
        """List the known source extensions present under root, most common first."""
        counts: dict[str, int] = {}
        for dirpath, dirnames, filenames in os.walk(os.path.abspath(root), onerror=self._on_error):
            dirnames[:] = [d for d in dirnames if not self.should_skip(d)]
            for name in filenames:
                ext = os.path.splitext(name)[1].lower()
                if ext in EXTENSION_CLASSES:
                    counts[ext] = counts.get(ext, 0) + 1
        return sorted(counts, key=lambda e: (-counts[e], e))

    @staticmethod
    def _on_error(error: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", error.filename, error)
