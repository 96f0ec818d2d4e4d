"""FastAPI routes exposing the dependency engine."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from filedep.graph_data import build_graph_data, find_cycles
from filedep.web.state import state

router = APIRouter(prefix="/api")


# --- Request / Response models ---

class UpdateRequest(BaseModel):
    roots: list[str] | None = None

class ExtensionsRequest(BaseModel):
    extensions: list[str]

class ExtensionToggle(BaseModel):
    extension: str
    enabled: bool

class DirectoryToggle(BaseModel):
    path: str
    enabled: bool


# --- Endpoints ---

@router.post("/update")
async def update_dependencies(req: UpdateRequest | None = None):
    """Run a full scan and return a summary."""
    engine = state.engine
    roots = req.roots if req else None
    if roots is not None:
        missing = [r for r in roots if not Path(r).expanduser().is_dir()]
        if missing:
            raise HTTPException(404, f"Directory not found: {missing[0]}")
        roots = [str(Path(r).expanduser().resolve()) for r in roots]
    elif not engine.roots:
        raise HTTPException(400, "No workspace roots configured")

    snapshot = await engine.update_dependencies(roots)
    state.mark_updated()
    return {
        "files": snapshot.file_count,
        "edges": snapshot.edge_count,
        "generation": snapshot.generation,
        "timestamp": state.last_update,
    }


@router.get("/dependencies")
async def get_dependencies():
    return {"dependencies": state.engine.get_dependencies()}


@router.get("/dependents")
async def get_dependents():
    return {"dependents": state.engine.get_dependents()}


@router.get("/graph")
async def get_graph(cycles: bool = False):
    engine = state.engine
    mapping = engine.get_dependencies()
    root = engine.roots[0] if engine.roots else None
    payload = build_graph_data(mapping, root).to_dict()
    payload["directories"] = [d.to_dict() for d in engine.get_directory_states()]
    payload["extensions"] = [e.to_dict() for e in engine.get_target_extensions()]
    if cycles:
        payload["cycles"] = find_cycles(mapping)
    return payload


@router.get("/directories")
async def get_directories():
    return {"directories": [d.to_dict() for d in state.engine.get_directory_states()]}


@router.get("/directories/enabled")
async def directory_enabled(path: str = Query("")):
    return {"path": path, "enabled": state.engine.is_directory_enabled(path)}


@router.post("/directories/toggle")
async def toggle_directory(req: DirectoryToggle):
    engine = state.engine
    await engine.set_directory_enabled(req.path, req.enabled)
    return {"directories": [d.to_dict() for d in engine.get_directory_states()]}


@router.get("/extensions")
async def get_extensions():
    return {"extensions": [e.to_dict() for e in state.engine.get_target_extensions()]}


@router.put("/extensions")
async def set_extensions(req: ExtensionsRequest):
    """Replace the target extensions. A new /update is needed to collect added ones."""
    state.engine.set_target_extensions(req.extensions)
    return {"extensions": [e.to_dict() for e in state.engine.get_target_extensions()]}


@router.post("/extensions/toggle")
async def toggle_extension(req: ExtensionToggle):
    engine = state.engine
    engine.set_extension_enabled(req.extension, req.enabled)
    return {"extension": req.extension, "enabled": engine.is_extension_enabled(req.extension)}
