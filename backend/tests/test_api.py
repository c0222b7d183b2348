# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for the workflow HTTP API
"""

import pytest
from fastapi.testclient import TestClient

from flowgraph.api import workflows
from flowgraph.main import create_app
from flowgraph.workflow_nodes import NodeType

from tests.helpers import StubExecutor, build_graph, chain, make_edge, make_node, stub_registry


@pytest.fixture
def http_stub():
    return StubExecutor({"status": 200, "data": {"ok": True}})


@pytest.fixture
def client(config, http_stub):
    """TestClient with stub executors and a quiet config"""
    app = create_app()
    app.dependency_overrides[workflows.get_engine_config] = lambda: config
    app.dependency_overrides[workflows.get_executor_registry] = lambda: stub_registry({NodeType.HTTP_ACTION: http_stub})
    return TestClient(app)


def runnable_snapshot():
    graph = build_graph(
        [make_node("trigger", NodeType.MANUAL_TRIGGER), make_node("http", NodeType.HTTP_ACTION, url="https://x.io")],
        [make_edge("trigger", "http")],
    )
    return graph.to_dict()


def cyclic_snapshot():
    graph = chain("a", "b")
    graph.add_edge(make_edge("b", "a"))
    return graph.to_dict()


def test_health(client):
    """Health endpoint reports the version"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_validate_valid_graph(client):
    """Valid snapshots validate cleanly"""
    response = client.post("/workflows/validate", json=runnable_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is True
    # neither http branch is wired
    assert body["warnings"][0]["type"] == "missing_label"
    assert body["warning_node_ids"] == ["http"]


def test_validate_cycle(client):
    """Cycles are reported with the affected nodes"""
    response = client.post("/workflows/validate", json=cyclic_snapshot())

    body = response.json()
    assert body["is_valid"] is False
    assert body["errors"][0]["type"] == "cycle"
    assert body["errors"][0]["cycle_path"] == ["a", "b", "a"]
    assert body["error_node_ids"] == ["a", "b"]


def test_validate_dangling_edge(client):
    """Snapshots with dangling edges are bad requests"""
    snapshot = {"nodes": [{"id": "a", "type": "logic:delay", "data": {}}], "edges": [{"source": "a", "target": "b"}]}
    response = client.post("/workflows/validate", json=snapshot)
    assert response.status_code == 400


def test_validate_unknown_kind(client):
    """Unknown node kinds fail request validation"""
    snapshot = {"nodes": [{"id": "a", "type": "action:fax", "data": {}}], "edges": []}
    response = client.post("/workflows/validate", json=snapshot)
    assert response.status_code == 422


def test_connection_check(client):
    """Candidate connections are checked against the snapshot"""
    response = client.post("/workflows/connections/check", json={
        "snapshot": runnable_snapshot(),
        "sourceId": "http",
        "targetId": "trigger",
        "sourceHandle": "success",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["allowed"] is False
    assert body["edge"] is None
    assert body["reason"] == "This connection would create a cycle in the workflow"


def test_connection_check_allowed(client):
    """Allowed connections report no errors"""
    snapshot = runnable_snapshot()
    snapshot["nodes"].append(make_node("mail", NodeType.EMAIL_ACTION).model_dump(mode="json", by_alias=True))

    response = client.post("/workflows/connections/check", json={
        "snapshot": snapshot,
        "sourceId": "http",
        "targetId": "mail",
        "sourceHandle": "source__error",
    })

    assert response.json() == {"allowed": True, "reason": None, "errors": [], "edge": None}


def test_run(client, http_stub):
    """Runs return the full result"""
    response = client.post("/workflows/run", json={
        "snapshot": runnable_snapshot(),
        "options": {"triggerPayload": {"source": "api"}},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["execution_path"] == ["trigger", "http"]
    assert body["node_outputs"]["trigger"]["source"] == "api"
    assert len(http_stub.calls) == 1


def test_run_invalid_graph(client):
    """Graphs with validation errors are bad requests"""
    response = client.post("/workflows/run", json={"snapshot": cyclic_snapshot()})

    assert response.status_code == 400
    assert "Workflow has validation errors" in response.json()["detail"]


def test_run_unknown_start_node(client):
    """Unknown start nodes are bad requests"""
    response = client.post("/workflows/run", json={
        "snapshot": runnable_snapshot(),
        "options": {"startNodeId": "ghost"},
    })
    assert response.status_code == 400


def test_run_invalid_options(client):
    """Option constraints are enforced"""
    response = client.post("/workflows/run", json={
        "snapshot": runnable_snapshot(),
        "options": {"nodeTimeout": 0},
    })
    assert response.status_code == 422


def test_templates(client):
    """Templates are listed and instantiated"""
    listing = client.get("/workflows/templates").json()
    assert listing[0]["id"] == "new-lead-welcome"

    snapshot = client.get("/workflows/templates/new-lead-welcome").json()
    assert len(snapshot["nodes"]) == 7

    assert client.get("/workflows/templates/nope").status_code == 404
