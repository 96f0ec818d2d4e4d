"""Resolve raw import specifiers to files on disk."""

from __future__ import annotations

import logging
import os
from typing import Iterable

from filedep.models import EXTENSION_CLASSES, FileClass, file_class_for, normalize_extension

logger = logging.getLogger(__name__)

INDEX_BASENAME = "index"

# Suffixes that mark a specifier as naming a concrete file
ASSET_EXTENSIONS = frozenset({
    ".json", ".wasm", ".map", ".txt", ".md", ".xml", ".yaml", ".yml",
    ".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".avif", ".ico", ".bmp",
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    ".mp3", ".wav", ".ogg", ".mp4", ".webm",
    ".glsl", ".vert", ".frag", ".graphql", ".gql",
})
RECOGNIZED_EXTENSIONS = frozenset(EXTENSION_CLASSES) | ASSET_EXTENSIONS


def _last_segment(specifier: str) -> str:
    return specifier.rsplit("/", 1)[-1]


def names_directory(specifier: str) -> bool:
    """'.', '..', './' and 'foo/' can only mean a directory."""
    return specifier.endswith("/") or _last_segment(specifier) in ("", ".", "..")


def has_explicit_extension(specifier: str, known: Iterable[str] = ()) -> bool:
    """True when the last segment ends in a recognized file extension.

    Dotted base names such as ``./app.module`` do not count.
    """
    if names_directory(specifier):
        return False
    ext = os.path.splitext(_last_segment(specifier))[1].lower()
    if not ext:
        return False
    return ext in RECOGNIZED_EXTENSIONS or ext in {normalize_extension(k) for k in known}


def is_regular_file(path: str) -> bool:
    try:
        return os.path.isfile(path)
    except (OSError, ValueError):
        return False


class PathResolver:
    """Turn (base directory, specifier) into an existing file path.

    Precedence, first hit wins:
      1. a specifier with a recognized extension is checked as-is and
         nothing else;
      2. for each candidate extension in order, ``spec + ext`` then
         ``spec/index + ext``. Specifiers that name a directory
         (``.``, ``..``, trailing ``/``) only try the index file.
    """

    def __init__(self, extensions: Iterable[str] = ()):
        self.extensions = [normalize_extension(e) for e in extensions if e]

    def resolve(
        self,
        base_dir: str,
        specifier: str,
        extensions: Iterable[str] | None = None,
        root: str | None = None,
    ) -> str | None:
        """Return the absolute path the specifier refers to, or None."""
        specifier = specifier.strip() if isinstance(specifier, str) else ""
        if not specifier:
            return None
        try:
            target = self._join(base_dir, specifier, root)
        except (TypeError, ValueError):
            return None

        candidates = self.extensions if extensions is None else [normalize_extension(e) for e in extensions]
        if has_explicit_extension(specifier, candidates):
            return target if is_regular_file(target) else None

        directory_only = names_directory(specifier)
        for ext in candidates:
            if not directory_only:
                direct = target + ext
                if is_regular_file(direct):
                    return direct
            index = os.path.join(target, INDEX_BASENAME + ext)
            if is_regular_file(index):
                return index
        return None

    def resolve_dependencies(
        self,
        file_path: str,
        specifiers: Iterable[str],
        root: str | None = None,
    ) -> set[str]:
        """Resolve every specifier found in file_path, dropping misses."""
        base_dir = os.path.dirname(file_path)
        candidates = self.candidates_for(os.path.splitext(file_path)[1])
        resolved: set[str] = set()
        for spec in specifiers:
            target = self.resolve(base_dir, spec, candidates, root=root)
            if target is None:
                logger.debug("Unresolved %r in %s", spec, file_path)
                continue
            resolved.add(target)
        return resolved

    def candidates_for(self, source_extension: str) -> list[str]:
        """Stylesheets only look for other stylesheets when the extension is omitted."""
        if file_class_for(source_extension) is FileClass.STYLESHEET:
            return [e for e in self.extensions if file_class_for(e) is FileClass.STYLESHEET]
        return list(self.extensions)

    @staticmethod
    def _join(base_dir: str, specifier: str, root: str | None) -> str | None:
        specifier = specifier.strip()
        if not specifier:
            return None
        if specifier.startswith("/") and root is not None:
            joined = os.path.join(root, specifier.lstrip("/"))
        else:
            joined = os.path.join(base_dir, specifier)
        return os.path.normpath(os.path.abspath(joined))
