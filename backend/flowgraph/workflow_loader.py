# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Loader - Load and save graph snapshots as text files

Snapshots are the persisted {nodes, edges} shape in JSON (.json) or YAML
(.yaml / .yml). Loading rebuilds a WorkflowGraph; nothing else is stored.
"""
from pathlib import Path
from typing import Any, Dict, Union
import json

import yaml
from pydantic import ValidationError as PydanticValidationError

from .core.errors import NotFoundError, ValidationError
from .graph_model import WorkflowGraph
from .workflow_models import GraphSnapshot


YAML_SUFFIXES = {".yaml", ".yml"}
SUPPORTED_SUFFIXES = YAML_SUFFIXES | {".json"}


def _check_suffix(path: Path) -> None:
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValidationError(
            f"Unsupported workflow file type: {path.suffix or '(none)'}. Use .json, .yaml or .yml",
            field="path",
        )


def read_snapshot(path: Union[str, Path]) -> GraphSnapshot:
    """
    Read and parse a snapshot file.

    Raises:
        NotFoundError: File does not exist
        ValidationError: Unsupported type, unparsable file or invalid snapshot shape
    """
    path = Path(path)
    _check_suffix(path)
    if not path.exists():
        raise NotFoundError("Workflow file", str(path))

    with open(path, "r") as f:
        try:
            if path.suffix.lower() in YAML_SUFFIXES:
                raw = yaml.safe_load(f) or {}
            else:
                raw = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValidationError(f"Could not parse {path.name}: {e}", field="path")

    try:
        return GraphSnapshot.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid workflow snapshot in {path.name}: {e}", field="snapshot")


def load_graph(path: Union[str, Path]) -> WorkflowGraph:
    """Load a snapshot file into a WorkflowGraph."""
    return WorkflowGraph.from_snapshot(read_snapshot(path))


def save_graph(path: Union[str, Path], graph: WorkflowGraph) -> Path:
    """Write a graph as a snapshot file; format follows the file suffix."""
    path = Path(path)
    _check_suffix(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data: Dict[str, Any] = graph.to_dict()
    with open(path, "w") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            yaml.safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
    return path
