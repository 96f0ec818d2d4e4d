"""filedep: file-level dependency graphs for script, stylesheet and markup workspaces."""

__version__ = "0.1.0"

from filedep.engine import DependencyGraphEngine
from filedep.models import GraphConfig, GraphSnapshot

__all__ = ["DependencyGraphEngine", "GraphConfig", "GraphSnapshot", "__version__"]
