"""Dependency graph engine: collect -> extract -> resolve -> aggregate."""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import threading
from pathlib import Path

from filedep.collector import FileCollector
from filedep.extractor import ImportExtractor
from filedep.models import (
    DirectoryState,
    ExtensionState,
    GraphConfig,
    GraphSnapshot,
    file_class_for,
    normalize_extension,
)
from filedep.resolver import PathResolver

logger = logging.getLogger(__name__)


def _dedupe(extensions: list[str]) -> list[str]:
    seen: list[str] = []
    for ext in extensions:
        ext = normalize_extension(ext)
        if ext and ext not in seen:
            seen.append(ext)
    return seen


def _normalize_dir(path: str) -> str:
    path = posixpath.normpath(path.replace("\\", "/").strip() or ".").strip("/")
    return "" if path == "." else path


def _ancestors(rel_dir: str) -> list[str]:
    """Every prefix of rel_dir by segment, root ("") first."""
    result = [""]
    if not rel_dir:
        return result
    parts = rel_dir.split("/")
    for i in range(1, len(parts) + 1):
        result.append("/".join(parts[:i]))
    return result


def sort_directories(directories) -> list[str]:
    """Shallow to deep, then lexicographic."""
    return sorted(set(directories), key=lambda d: (0 if not d else d.count("/") + 1, d))


def build_reverse(dependencies: dict[str, frozenset[str]]) -> dict[str, frozenset[str]]:
    reverse: dict[str, set[str]] = {path: set() for path in dependencies}
    for source, targets in dependencies.items():
        for target in targets:
            reverse.setdefault(target, set()).add(source)
    return {path: frozenset(sources) for path, sources in reverse.items()}


def _root_for(path: str, roots: list[str]) -> str | None:
    best = None
    for root in roots:
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            if best is None or len(root) > len(best):
                best = root
    return best


def relative_dir(path: str, roots: list[str], root: str | None = None) -> str:
    """Containing directory of path relative to its workspace root.

    With several roots the root's folder name is used as a prefix.
    """
    if root is None:
        root = _root_for(path, roots)
    if root is None:
        return _normalize_dir(os.path.dirname(path))
    rel = _normalize_dir(os.path.relpath(os.path.dirname(path), root).replace(os.sep, "/"))
    if len(roots) > 1:
        prefix = os.path.basename(root)
        return f"{prefix}/{rel}" if rel else prefix
    return rel


class DependencyGraphEngine:
    """Build and filter the file dependency graph of one or more workspace roots.

    Scan results are published as a whole :class:`GraphSnapshot`; readers
    never see a half-built mapping. Extension and directory toggles only
    filter the published snapshot and do not require a re-scan.
    """

    def __init__(
        self,
        roots: list[str | Path] | None = None,
        config: GraphConfig | None = None,
    ):
        self.config = config or GraphConfig()
        self.roots: list[str] = [os.path.abspath(r) for r in (roots or [])]
        self._lock = threading.Lock()
        self._target_extensions: list[str] = _dedupe(self.config.target_extensions)
        self._disabled_extensions: set[str] = set()
        self._directory_states: dict[str, bool] = {}
        self._snapshot = GraphSnapshot()
        self._started = 0

        self.extractor = ImportExtractor()

    # ── Scanning ────────────────────────────────────────────

    @property
    def snapshot(self) -> GraphSnapshot:
        with self._lock:
            return self._snapshot

    def build_graph(self, roots: list[str | Path] | None = None) -> GraphSnapshot:
        """Synchronous wrapper around :meth:`update_dependencies`."""
        return asyncio.run(self.update_dependencies(roots))

    async def update_dependencies(self, roots: list[str | Path] | None = None) -> GraphSnapshot:
        """Run a full scan cycle and publish its result."""
        if roots is not None:
            self.roots = [os.path.abspath(r) for r in roots]
        with self._lock:
            self._started += 1
            generation = self._started
        scan_roots = list(self.roots)

        if not scan_roots:
            logger.info("No workspace roots to scan")
        snapshot = await self._scan(scan_roots, generation)

        with self._lock:
            if generation < self._snapshot.generation:
                logger.info("Discarding scan %d, newer scan %d already published",
                            generation, self._snapshot.generation)
                return self._snapshot
            self._snapshot = snapshot
        logger.info("Scan %d: %d files, %d dependencies",
                    generation, snapshot.file_count, snapshot.edge_count)
        return snapshot

    async def _scan(self, roots: list[str], generation: int) -> GraphSnapshot:
        collector = FileCollector(
            ignored_directories=list(self.config.ignored_directories),
            skip_hidden=self.config.skip_hidden,
        )
        if self.config.auto_detect:
            self._apply_detected_extensions(collector, roots)

        extensions = self._scan_extensions()
        resolver = PathResolver(extensions)

        # Collecting
        files: dict[str, str] = {}  # file -> owning root
        for root in roots:
            found = await asyncio.to_thread(collector.collect, root, extensions)
            for path in found:
                files.setdefault(path, root)

        # Extracting + resolving, bounded fan-out
        semaphore = asyncio.Semaphore(max(1, self.config.max_workers))

        async def analyze(path: str) -> tuple[str, frozenset[str]]:
            async with semaphore:
                deps = await asyncio.to_thread(self._analyze_file, path, files[path], resolver)
            return path, deps

        results = await asyncio.gather(*(analyze(p) for p in files))
        dependencies = dict(results)

        # Aggregating
        return GraphSnapshot(
            roots=list(roots),
            dependencies=dependencies,
            dependents=build_reverse(dependencies),
            directories=self._derive_directories(files, roots),
            generation=generation,
        )

    def _analyze_file(self, path: str, root: str, resolver: PathResolver) -> frozenset[str]:
        try:
            size = os.path.getsize(path)
            if size > self.config.max_file_size:
                logger.info("Skipping %s: %d bytes exceeds limit", path, size)
                return frozenset()
            with open(path, encoding="utf-8", errors="replace") as fh:
                content = fh.read()
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            return frozenset()

        ext = os.path.splitext(path)[1].lower()
        specifiers = self.extractor.extract(content, file_class_for(ext))
        if not specifiers:
            return frozenset()
        return frozenset(resolver.resolve_dependencies(path, specifiers, root=root))

    def _apply_detected_extensions(self, collector: FileCollector, roots: list[str]) -> None:
        detected: list[str] = []
        for root in roots:
            for ext in collector.detect_extensions(root):
                if ext not in detected:
                    detected.append(ext)
        with self._lock:
            current = self._target_extensions
            ordered = [e for e in current if e in detected]
            ordered += [e for e in detected if e not in ordered]
            self._target_extensions = ordered
        logger.info("Detected extensions: %s", ", ".join(ordered) or "(none)")

    def _scan_extensions(self) -> list[str]:
        ignored = {normalize_extension(e) for e in self.config.ignored_extensions}
        with self._lock:
            return [e for e in self._target_extensions if e not in ignored]

    def _derive_directories(self, files: dict[str, str], roots: list[str]) -> list[str]:
        if self.config.directories is not None:
            return sort_directories(_normalize_dir(d) for d in self.config.directories)
        directories: set[str] = set()
        for path, root in files.items():
            directories.update(_ancestors(relative_dir(path, roots, root)))
        return sort_directories(directories)

    def relative_dir(self, path: str) -> str:
        """Containing directory of path relative to the published scan's roots."""
        return relative_dir(path, self.snapshot.roots)

    # ── Filtered views ──────────────────────────────────────

    def get_all_dependencies(self) -> dict[str, list[str]]:
        """Unfiltered mapping of the last published scan."""
        snapshot = self.snapshot
        return {path: sorted(deps) for path, deps in snapshot.dependencies.items()}

    def get_dependencies(self) -> dict[str, list[str]]:
        """Mapping restricted to enabled extensions and directories."""
        snapshot = self.snapshot
        return self._filtered(snapshot.dependencies, snapshot.roots)

    def get_dependents(self) -> dict[str, list[str]]:
        snapshot = self.snapshot
        return self._filtered(snapshot.dependents, snapshot.roots)

    def _filtered(self, mapping: dict[str, frozenset[str]], roots: list[str]) -> dict[str, list[str]]:
        visible = self._visibility(roots)
        return {
            path: sorted(t for t in targets if visible(t))
            for path, targets in mapping.items()
            if visible(path)
        }

    def _visibility(self, roots: list[str]):
        with self._lock:
            targets = set(self._target_extensions) - self._disabled_extensions
            directory_states = dict(self._directory_states)
        cache: dict[str, bool] = {}

        def visible(path: str) -> bool:
            if path in cache:
                return cache[path]
            ok = os.path.splitext(path)[1].lower() in targets
            if ok:
                ok = all(directory_states.get(d, True) for d in _ancestors(relative_dir(path, roots)))
            cache[path] = ok
            return ok

        return visible

    def get_unique_directories(self) -> list[str]:
        return list(self.snapshot.directories)

    def get_directory_states(self) -> list[DirectoryState]:
        return [DirectoryState(path=d, enabled=self.is_directory_enabled(d))
                for d in self.get_unique_directories()]

    # ── Extension toggles ───────────────────────────────────

    def set_target_extensions(self, extensions: list[str]) -> None:
        """Replace the target extension list; takes effect on the next scan."""
        with self._lock:
            self._target_extensions = _dedupe(extensions)

    def get_target_extensions(self) -> list[ExtensionState]:
        with self._lock:
            return [ExtensionState(ext, ext not in self._disabled_extensions)
                    for ext in self._target_extensions]

    def set_extension_enabled(self, extension: str, enabled: bool) -> None:
        ext = normalize_extension(extension)
        with self._lock:
            if enabled:
                self._disabled_extensions.discard(ext)
            else:
                self._disabled_extensions.add(ext)

    def is_extension_enabled(self, extension: str) -> bool:
        with self._lock:
            return normalize_extension(extension) not in self._disabled_extensions

    # ── Directory toggles ───────────────────────────────────

    async def set_directory_enabled(self, path: str, enabled: bool) -> None:
        """Disabling cascades to every descendant; enabling touches only path."""
        path = _normalize_dir(path)
        with self._lock:
            if enabled:
                self._directory_states[path] = True
                return
            known = set(self._snapshot.directories) | set(self._directory_states) | {path}
            for d in known:
                if not path or d == path or d.startswith(path + "/"):
                    self._directory_states[d] = False

    def is_directory_enabled(self, path: str) -> bool:
        with self._lock:
            return self._directory_states.get(_normalize_dir(path), True)
