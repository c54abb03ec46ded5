"""
JSON persistence of graphs.

The output document has two keys, `nodes` (an object keyed by node id) and
`links` (an array of `{source, target}` objects), and is validated against
`GRAPH_SCHEMA` before it is written.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from .errors import GraphValidationError
from .models import Graph

LOGGER = logging.getLogger(__name__)

GRAPH_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Markdown graph",
    "type": "object",
    "required": ["nodes", "links"],
    "additionalProperties": False,
    "properties": {
        "nodes": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["id", "label"],
                "additionalProperties": False,
                "properties": {
                    "id": {"type": "string"},
                    "label": {"type": "string"},
                    "metadata": {
                        "type": "object",
                        "additionalProperties": {"type": "string"},
                    },
                },
            },
        },
        "links": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "additionalProperties": False,
                "properties": {
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                },
            },
        },
    },
}


def graph_to_dict(graph: Graph) -> Dict[str, Any]:
    """Plain JSON-compatible form of a graph; `metadata` is omitted when absent."""
    return {
        "nodes": {
            node_id: node.model_dump(exclude_none=True) for node_id, node in graph.nodes.items()
        },
        "links": [link.model_dump() for link in graph.links],
    }


def iter_validation_errors(data: Dict[str, Any]) -> Iterable[ValidationError]:
    validator = Draft202012Validator(GRAPH_SCHEMA)
    return sorted(validator.iter_errors(data), key=lambda e: [str(part) for part in e.path])


def validate_graph_dict(data: Dict[str, Any]) -> None:
    """
    Raises:
        GraphValidationError: If `data` does not match `GRAPH_SCHEMA`.
    """
    messages: List[str] = [
        f"{'/'.join(str(part) for part in error.path) or '<root>'}: {error.message}"
        for error in iter_validation_errors(data)
    ]
    if messages:
        raise GraphValidationError(messages)


def write_graph(graph: Graph, path: Path) -> Path:
    """
    Validates and writes a graph as indented UTF-8 JSON, creating parent
    directories as needed.

    Returns:
        The path written to.
    """
    data = graph_to_dict(graph)
    validate_graph_dict(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False, indent=2)
    LOGGER.debug("Wrote %d nodes and %d links to %s", len(graph.nodes), len(graph.links), path)
    return path


def load_graph(path: Path) -> Graph:
    """Reads a graph previously written by `write_graph`."""
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    validate_graph_dict(data)
    return Graph.model_validate(data)
