"""Data models for the filedep dependency engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class FileClass(enum.Enum):
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    MARKUP = "markup"
    MARKUP_SCRIPT = "markup_script"


EXTENSION_CLASSES: dict[str, FileClass] = {
    ".js": FileClass.SCRIPT,
    ".jsx": FileClass.SCRIPT,
    ".ts": FileClass.SCRIPT,
    ".tsx": FileClass.SCRIPT,
    ".mjs": FileClass.SCRIPT,
    ".cjs": FileClass.SCRIPT,
    ".css": FileClass.STYLESHEET,
    ".scss": FileClass.STYLESHEET,
    ".sass": FileClass.STYLESHEET,
    ".less": FileClass.STYLESHEET,
    ".html": FileClass.MARKUP,
    ".htm": FileClass.MARKUP,
    ".vue": FileClass.MARKUP_SCRIPT,
    ".svelte": FileClass.MARKUP_SCRIPT,
}

DEFAULT_TARGET_EXTENSIONS: list[str] = [
    ".js", ".jsx", ".ts", ".tsx", ".vue", ".svelte", ".css",
]

DEFAULT_IGNORED_DIRECTORIES: list[str] = [
    "node_modules", "dist", "build", "out",
]


def file_class_for(extension: str) -> FileClass | None:
    """Map a dotted extension to its file class, or None if unknown."""
    return EXTENSION_CLASSES.get(extension.lower())


def normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    if not ext:
        return ext
    return ext if ext.startswith(".") else f".{ext}"


@dataclass
class GraphConfig:
    """Configuration consumed by the engine for one workspace."""
    target_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_TARGET_EXTENSIONS)
    )
    ignored_directories: list[str] = field(
        default_factory=lambda: list(DEFAULT_IGNORED_DIRECTORIES)
    )
    ignored_extensions: list[str] = field(default_factory=list)
    directories: list[str] | None = None  # explicit filter list, overrides discovery
    skip_hidden: bool = True
    max_file_size: int = 1024 * 1024
    max_workers: int = 16
    auto_detect: bool = False


@dataclass
class ExtensionState:
    extension: str
    enabled: bool = True

    def to_dict(self) -> dict:
        return {"extension": self.extension, "enabled": self.enabled}


@dataclass
class DirectoryState:
    path: str  # relative to the workspace root, "" for the root itself
    enabled: bool = True

    @property
    def depth(self) -> int:
        return 0 if not self.path else self.path.count("/") + 1

    def to_dict(self) -> dict:
        return {"path": self.path, "enabled": self.enabled}


@dataclass
class GraphSnapshot:
    """Immutable-by-convention result of one scan cycle.

    The engine replaces its snapshot wholesale; nothing mutates a published
    snapshot in place.
    """
    roots: list[str] = field(default_factory=list)
    dependencies: dict[str, frozenset[str]] = field(default_factory=dict)
    dependents: dict[str, frozenset[str]] = field(default_factory=dict)
    directories: list[str] = field(default_factory=list)
    generation: int = 0

    @property
    def file_count(self) -> int:
        return len(self.dependencies)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.dependencies.values())


@dataclass
class GraphNode:
    id: int
    name: str
    full_path: str
    dir_path: str
    extension: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "full_path": self.full_path,
            "dir_path": self.dir_path,
            "extension": self.extension,
        }


@dataclass
class GraphLink:
    source: int
    target: int

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target}


@dataclass
class GraphData:
    """Node/link form of a dependency mapping, ready for a renderer."""
    nodes: list[GraphNode] = field(default_factory=list)
    links: list[GraphLink] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }
