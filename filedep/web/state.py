"""In-memory state for the web API — one engine per process."""

from __future__ import annotations

from datetime import datetime

from filedep.engine import DependencyGraphEngine


class AppState:
    """Singleton holder for the engine shared by all API routes."""

    def __init__(self):
        self.engine: DependencyGraphEngine = DependencyGraphEngine()
        self.last_update: str | None = None

    def use_engine(self, engine: DependencyGraphEngine) -> None:
        self.engine = engine
        self.last_update = None

    def mark_updated(self) -> None:
        self.last_update = datetime.now().isoformat()


# Module-level singleton — all routers import this
state = AppState()
