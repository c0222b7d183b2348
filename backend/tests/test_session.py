# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for the workflow editing session
"""

import pytest

from flowgraph.connection_rules import CREATES_CYCLE
from flowgraph.core.errors import NotFoundError, SchemaError, ValidationError
from flowgraph.engine import WorkflowExecutionError
from flowgraph.session import ONE_MANUAL_TRIGGER, WorkflowSession
from flowgraph.workflow_models import ExecutionOptions, ExecutionStatus, IssueType, RunStatus
from flowgraph.workflow_nodes import HttpActionData, NodeType

from tests.helpers import StubExecutor, stub_registry


@pytest.fixture
def session(config):
    return WorkflowSession(config=config, executors=stub_registry())


def wire_http_flow(session):
    session.add_node(NodeType.MANUAL_TRIGGER, node_id="trigger")
    session.add_node(NodeType.HTTP_ACTION, node_id="http", data={"url": "https://api.example.com"})
    session.add_node(NodeType.EMAIL_ACTION, node_id="ok")
    session.add_node(NodeType.SMS_ACTION, node_id="alert")
    session.add_connection("trigger", "http")
    session.add_connection("http", "ok", "success")
    session.add_connection("http", "alert", "error")
    return session


class TestNodes:
    """Node edits"""

    def test_add_node_defaults(self, session):
        """New nodes get a generated id and the kind's defaults"""
        node = session.add_node("action:http", position={"x": 10, "y": 20})

        assert node.id.startswith("node_")
        assert node.label == "HTTP Request"
        assert isinstance(node.data, HttpActionData)
        assert node.position.x == 10
        assert session.graph.has_node(node.id)

    def test_add_node_with_data(self, session):
        """Given data overrides the defaults"""
        node = session.add_node(NodeType.DELAY, data={"delayValue": 3, "delayUnit": "minutes"})
        assert node.data.delay_value == 3
        assert node.label == "Delay"

    @pytest.mark.parametrize("number_key", ["to_number", "toNumber"])
    def test_add_node_accepts_field_names_and_aliases(self, session, number_key):
        """Python field names and wire aliases both set the field"""
        node = session.add_node(NodeType.SMS_ACTION, data={number_key: "+15550001111", "message": "hi"})
        assert node.data.to_number == "+15550001111"
        assert node.data.message == "hi"

    @pytest.mark.parametrize("value_key, unit_key", [
        ("delay_value", "delay_unit"),
        ("delayValue", "delayUnit"),
    ])
    def test_update_node_data_accepts_field_names_and_aliases(self, session, value_key, unit_key):
        """Updates through either spelling replace the stored value"""
        session.add_node(NodeType.DELAY, node_id="wait", data={"delayValue": 2})
        updated = session.update_node_data("wait", {value_key: 7, unit_key: "hours"})

        assert updated.data.delay_value == 7
        assert updated.data.delay_unit == "hours"
        assert session.graph.get_node("wait").data.delay_value == 7

    def test_one_manual_trigger(self, session):
        """A second manual trigger is refused"""
        session.add_node(NodeType.MANUAL_TRIGGER)

        check = session.can_add_node(NodeType.MANUAL_TRIGGER)
        assert not check.allowed
        assert check.reason == ONE_MANUAL_TRIGGER
        with pytest.raises(ValidationError, match=ONE_MANUAL_TRIGGER):
            session.add_node(NodeType.MANUAL_TRIGGER)
        assert session.can_add_node(NodeType.WEBHOOK_TRIGGER).allowed

    def test_duplicate_id_refused(self, session):
        """Explicit ids must be unique"""
        session.add_node(NodeType.DELAY, node_id="wait")
        with pytest.raises(ValidationError):
            session.add_node(NodeType.DELAY, node_id="wait")

    def test_unknown_kind(self, session):
        """Unknown kinds are schema errors"""
        with pytest.raises(SchemaError):
            session.add_node("action:fax")

    def test_update_node_data(self, session):
        """Payload changes merge into the existing data"""
        session.add_node(NodeType.HTTP_ACTION, node_id="http", data={"url": "https://a.example.com"})
        updated = session.update_node_data("http", {"method": "POST", "type": "action:sms"})

        assert updated.type == NodeType.HTTP_ACTION
        assert updated.data.method == "POST"
        assert updated.data.url == "https://a.example.com"

        with pytest.raises(ValidationError):
            session.update_node_data("http", {"method": "TRACE"})
        with pytest.raises(NotFoundError):
            session.update_node_data("ghost", {})

    def test_update_position_keeps_edges(self, session):
        """Moving a node keeps its connections"""
        wire_http_flow(session)
        session.update_node_position("http", {"x": 500, "y": 50})

        assert session.graph.get_node("http").position.x == 500
        assert len(session.graph.neighbors("http")) == 2

    def test_remove_nodes_cascades(self, session):
        """Removing nodes removes their edges and revalidates"""
        wire_http_flow(session)
        removed = session.remove_nodes(["http", "ghost"])

        assert len(removed) == 3
        assert session.graph.edges == []
        orphans = {i.node_ids[0] for i in session.validation.warnings if i.type == IssueType.ORPHAN}
        assert orphans == {"ok", "alert"}


class TestConnections:
    """Edge edits"""

    def test_add_connection(self, session):
        """Allowed connections are committed with a derived id"""
        session.add_node(NodeType.MANUAL_TRIGGER, node_id="trigger")
        session.add_node(NodeType.DELAY, node_id="wait")
        assert session.validation.warnings

        check = session.add_connection("trigger", "wait", "source", "target")
        assert check.allowed
        assert check.edge.id == "e_trigger->wait"
        assert session.graph.has_edge("e_trigger->wait")
        assert session.validation.warnings == ()

    def test_rejected_connection_leaves_graph(self, session):
        """Rejected connections change nothing"""
        wire_http_flow(session)
        before = session.snapshot()

        check = session.add_connection("ok", "http")
        assert check.reason == CREATES_CYCLE
        assert check.edge is None
        assert session.snapshot() == before

    def test_duplicate_connection_is_idempotent(self, session):
        """Adding the same connection twice stores one edge"""
        wire_http_flow(session)
        assert not session.add_connection("http", "ok", "source__success").allowed
        assert len(session.graph.edges) == 3

    def test_remove_edges(self, session):
        """Removing an edge revalidates the graph"""
        wire_http_flow(session)
        session.remove_edges(["e_http_error->alert", "missing"])

        labels = [i for i in session.validation.warnings if i.type == IssueType.MISSING_LABEL]
        assert labels[0].missing_labels == ("error",)


class TestExecution:
    """Running the session's graph"""

    @pytest.mark.asyncio
    async def test_execute(self, session):
        """A valid graph runs and the result is kept"""
        wire_http_flow(session)

        result = await session.execute_workflow()

        assert result.status == RunStatus.COMPLETED
        assert session.last_result is result
        assert session.node_status("ok") == ExecutionStatus.SUCCESS
        assert session.node_status("alert") == ExecutionStatus.SKIPPED
        assert not session.is_executing

    @pytest.mark.asyncio
    async def test_refuses_invalid_graph(self, session):
        """Graphs with validation errors do not run"""
        session.load_snapshot({
            "nodes": [
                {"id": "a", "type": "logic:delay", "data": {}},
                {"id": "b", "type": "logic:delay", "data": {}},
            ],
            "edges": [{"source": "a", "target": "b"}, {"source": "b", "target": "a"}],
        })
        assert not session.validation.is_valid

        with pytest.raises(WorkflowExecutionError, match="Workflow has validation errors"):
            await session.execute_workflow()

    @pytest.mark.asyncio
    async def test_run_uses_copy_of_graph(self, config):
        """Edits after a run do not touch the executed graph"""
        stub = StubExecutor({"status": 200})
        session = wire_http_flow(WorkflowSession(config=config, executors=stub_registry({NodeType.HTTP_ACTION: stub})))

        await session.execute_workflow(ExecutionOptions(startNodeId="trigger"))
        session.remove_nodes(["alert"])

        assert session.last_result.node_statuses["alert"] == ExecutionStatus.SKIPPED
        assert len(stub.calls) == 1

    def test_stop_when_idle(self, session):
        """Stopping without a run is a no-op"""
        assert session.stop_execution() is False
        assert session.node_status("anything") == ExecutionStatus.IDLE
