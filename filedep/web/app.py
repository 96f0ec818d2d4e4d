"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from filedep import __version__
from filedep.engine import DependencyGraphEngine
from filedep.web.api import router
from filedep.web.state import state


def create_app(engine: DependencyGraphEngine | None = None) -> FastAPI:
    if engine is not None:
        state.use_engine(engine)
    app = FastAPI(title="filedep", version=__version__)
    app.include_router(router)
    return app
