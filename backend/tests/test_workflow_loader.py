# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for loading and saving graph snapshots
"""

import json

import pytest
import yaml

from flowgraph.core.errors import NotFoundError, ValidationError
from flowgraph.workflow_loader import load_graph, read_snapshot, save_graph
from flowgraph.workflow_nodes import NodeType

from tests.helpers import build_graph, make_edge, make_node


@pytest.fixture
def graph():
    return build_graph(
        [
            make_node("trigger", NodeType.MANUAL_TRIGGER),
            make_node("check", NodeType.IF_ELSE, conditions=[{"field": "x", "value": "1"}]),
            make_node("wait", NodeType.DELAY, delayValue=5),
        ],
        [make_edge("trigger", "check"), make_edge("check", "wait", "true")],
    )


@pytest.mark.parametrize("filename", ["flow.json", "flow.yaml", "nested/flow.yml"])
def test_save_and_load(tmp_path, graph, filename):
    """Saved graphs load back equal"""
    path = save_graph(tmp_path / filename, graph)
    assert path.exists()
    assert load_graph(path) == graph


def test_json_uses_wire_names(tmp_path, graph):
    """Saved JSON keeps camelCase field names"""
    path = save_graph(tmp_path / "flow.json", graph)
    data = json.loads(path.read_text())
    assert data["edges"][1]["sourceHandle"] == "true"
    assert data["nodes"][2]["data"]["delayValue"] == 5


def test_hand_written_yaml(tmp_path):
    """Minimal YAML snapshots are accepted"""
    path = tmp_path / "flow.yaml"
    path.write_text(yaml.safe_dump({
        "nodes": [
            {"id": "t", "type": "trigger:manual", "data": {"label": "Start"}},
            {"id": "s", "type": "action:sms", "data": {"toNumber": "+15550100", "message": "hi"}},
        ],
        "edges": [{"source": "t", "target": "s"}],
    }))

    graph = load_graph(path)
    assert graph.get_node("s").data.to_number == "+15550100"
    assert graph.has_edge("e_t->s")


def test_missing_file(tmp_path):
    """Missing files raise NotFoundError"""
    with pytest.raises(NotFoundError):
        read_snapshot(tmp_path / "nope.json")


def test_unsupported_suffix(tmp_path, graph):
    """Only JSON and YAML files are supported"""
    with pytest.raises(ValidationError, match="Unsupported workflow file type"):
        save_graph(tmp_path / "flow.txt", graph)


def test_unparsable_file(tmp_path):
    """Syntax errors raise ValidationError"""
    path = tmp_path / "flow.json"
    path.write_text("{nodes: ")
    with pytest.raises(ValidationError, match="Could not parse"):
        read_snapshot(path)


def test_invalid_snapshot_shape(tmp_path):
    """Structurally invalid snapshots raise ValidationError"""
    path = tmp_path / "flow.yaml"
    path.write_text(yaml.safe_dump({"nodes": [{"id": "x", "type": "action:fax", "data": {}}]}))
    with pytest.raises(ValidationError, match="Invalid workflow snapshot"):
        read_snapshot(path)
