"""
Normalizes backend responses into plain record lists, one per node kind.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from .models import NodeKind

logger = logging.getLogger(__name__)


def extract_records(response: Any, kind: NodeKind | str) -> List[Any]:
    """
    Accepts a bare list or any of the envelopes the REST backend returns:
    {"data": {"tasks": [...]}}, {"data": [...]} or {"tasks": [...]}.
    """
    kind = NodeKind.parse(kind)
    if response is None:
        return []
    if isinstance(response, list):
        return response
    if isinstance(response, Mapping):
        data = response.get("data", response)
        if isinstance(data, list):
            return data
        if isinstance(data, Mapping):
            records = data.get(kind.collection)
            if isinstance(records, list):
                return records
    logger.warning("Unrecognised %s response of type %s, treating as empty", kind.collection, type(response).__name__)
    return []


def load_collections(document: Mapping[str, Any], fill_missing: bool = True) -> Dict[NodeKind, List[Any]]:
    """
    Split one JSON document keyed by collection name into per-kind record lists.
    With fill_missing, kinds absent from the document come back empty.
    """
    collections: Dict[NodeKind, List[Any]] = {kind: [] for kind in NodeKind} if fill_missing else {}
    if isinstance(document.get("data"), Mapping):
        document = document["data"]
    for key, value in document.items():
        kind = NodeKind.parse(key)
        collections[kind] = extract_records(value, kind)
    return collections
