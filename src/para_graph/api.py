"""
FastAPI service feeding collections into the refresh controller and serving explorer queries.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException

from .config import settings
from .controller import RefreshController
from .errors import InvalidKindFilterError, SourcesNotReadyError
from .models import GraphStats, NeighborResult, Node, NodeKind
from .sources import extract_records, load_collections

app = FastAPI(title="PARA Relationship Graph", version="0.1.0")
controller = RefreshController()


def _kind(value: str) -> NodeKind:
    try:
        return NodeKind.parse(value)
    except InvalidKindFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.put("/collections/{kind}")
def deliver_collection(kind: str, payload: Any = Body(None), version: Optional[str] = None):
    node_kind = _kind(kind)
    records = extract_records(payload, node_kind)
    changed = controller.deliver(node_kind, records, version=version)
    status = controller.status()
    return {"changed": changed, "state": status["state"].value, "missing": status["missing"]}


@app.post("/collections")
def deliver_collections(payload: Dict[str, Any]):
    try:
        collections = load_collections(payload, fill_missing=False)
    except InvalidKindFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    changed = controller.deliver_all(collections)
    status = controller.status()
    return {"changed": changed, "state": status["state"].value, "missing": status["missing"]}


@app.post("/refresh")
def refresh():
    try:
        view = controller.refresh()
    except SourcesNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"sequence": view.snapshot.sequence, "state": controller.state.value}


@app.get("/state")
def read_state():
    return controller.status()


@app.get("/stats", response_model=GraphStats)
def read_stats():
    return controller.stats


@app.get("/search", response_model=List[Node])
def search(q: str = "", kind: str = "all"):
    try:
        return controller.search(q, kind)
    except InvalidKindFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/nodes/{node_id}", response_model=Node)
def read_node(node_id: str):
    node = controller.get(node_id)
    if not node:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


@app.get("/nodes/{node_id}/neighbors", response_model=NeighborResult)
def read_neighbors(node_id: str, limit: int = settings.neighbor_limit):
    if limit < 0:
        raise HTTPException(status_code=400, detail="limit must be non-negative")
    view = controller.current
    if not view.get(node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    return view.neighbors(node_id, limit=limit)


@app.get("/snapshot")
def export_snapshot():
    return controller.snapshot.export()
