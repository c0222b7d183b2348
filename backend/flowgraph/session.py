# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Session

Explicitly constructed owner of one workflow graph. Every structural edit
goes through the session, which re-runs full validation right after the
mutation and caches the result in `validation`. Edges are only ever created
through the connection rule check.
"""

import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .connection_rules import can_connect
from .core.config import Config, get_config
from .core.errors import NotFoundError, ValidationError
from .core.logging import get_logger, log_event
from .engine.exceptions import WorkflowExecutionError
from .engine.executor import WorkflowExecutor
from .executors import ExecutorRegistry
from .graph_model import WorkflowGraph
from .graph_validator import validate_workflow_graph
from .workflow_models import (
    ConnectionCheck,
    ExecutionOptions,
    ExecutionStatus,
    GraphSnapshot,
    Position,
    ValidationResult,
    WorkflowEdge,
    WorkflowNode,
    WorkflowRunResult,
    make_edge_id,
    normalize_handle,
)
from .workflow_nodes import NodeType, create_default_node_data, merge_node_data, node_type_of


ONE_MANUAL_TRIGGER = "Only one Manual Trigger node is allowed per workflow"


class WorkflowSession:
    """
    Single-writer editing and execution session for a workflow graph.

    Example:
        session = WorkflowSession()
        trigger = session.add_node("trigger:manual")
        http = session.add_node("action:http", data={"url": "https://example.com"})
        session.add_connection(trigger.id, http.id)
        result = await session.execute_workflow()
    """

    def __init__(
        self,
        graph: Optional[WorkflowGraph] = None,
        config: Optional[Config] = None,
        executors: Optional[ExecutorRegistry] = None,
        update_callback: Optional[Callable] = None,
    ):
        self.graph = graph or WorkflowGraph()
        self.config = config or get_config()
        self.executors = executors
        self.update_callback = update_callback
        self.logger = get_logger("session", self.config)

        self.validation: ValidationResult = validate_workflow_graph(self.graph)
        self.last_result: Optional[WorkflowRunResult] = None
        self._executor: Optional[WorkflowExecutor] = None

    # ========================================================================
    # Validation
    # ========================================================================

    def validate(self) -> ValidationResult:
        """Recompute validation for the whole graph."""
        self.validation = validate_workflow_graph(self.graph)
        return self.validation

    # ========================================================================
    # Nodes
    # ========================================================================

    def can_add_node(self, kind: Union[str, NodeType]) -> ConnectionCheck:
        node_type = node_type_of(kind)
        if node_type == NodeType.MANUAL_TRIGGER and self.graph.nodes_of_type(NodeType.MANUAL_TRIGGER):
            return ConnectionCheck(allowed=False, reason=ONE_MANUAL_TRIGGER, errors=(ONE_MANUAL_TRIGGER,))
        return ConnectionCheck(allowed=True)

    def add_node(
        self,
        kind: Union[str, NodeType],
        position: Optional[Dict[str, float]] = None,
        data: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> WorkflowNode:
        """
        Add a node with default data for its kind, overridden by data.

        Raises:
            SchemaError: Unknown kind
            ValidationError: Node constraints violated or invalid data
        """
        node_type = node_type_of(kind)
        check = self.can_add_node(node_type)
        if not check.allowed:
            raise ValidationError(check.reason, field="type")

        node_id = node_id or f"node_{uuid.uuid4().hex[:8]}"
        if self.graph.has_node(node_id):
            raise ValidationError(f"Duplicate node id: {node_id}", field="id")

        node_data = merge_node_data(create_default_node_data(node_type), data)

        node = WorkflowNode(
            id=node_id,
            type=node_type,
            position=Position(**(position or {})),
            data=node_data,
        )
        self.graph.add_node(node)
        log_event(self.logger, "node_added", node_id=node_id, kind=node_type.value)
        self.validate()
        return node

    def update_node_data(self, node_id: str, changes: Dict[str, Any]) -> WorkflowNode:
        """Merge changes into a node's payload; the kind cannot change."""
        node = self._require_node(node_id)
        updated = node.model_copy(update={"data": merge_node_data(node.data, changes)})
        self.graph.replace_node(updated)
        self.validate()
        return updated

    def update_node_position(self, node_id: str, position: Dict[str, float]) -> WorkflowNode:
        node = self._require_node(node_id)
        updated = node.model_copy(update={"position": Position(**position)})
        self.graph.replace_node(updated)
        return updated

    def remove_nodes(self, node_ids: Iterable[str]) -> List[WorkflowEdge]:
        """Remove nodes and their incident edges; unknown ids are ignored."""
        removed: List[WorkflowEdge] = []
        for node_id in node_ids:
            if self.graph.has_node(node_id):
                removed.extend(self.graph.remove_node(node_id))
        self.validate()
        return removed

    def _require_node(self, node_id: str) -> WorkflowNode:
        node = self.graph.get_node(node_id)
        if node is None:
            raise NotFoundError("Node", node_id)
        return node

    # ========================================================================
    # Edges
    # ========================================================================

    def can_connect(
        self,
        source_id: str,
        target_id: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> ConnectionCheck:
        return can_connect(self.graph, source_id, target_id, source_handle, target_handle)

    def add_connection(
        self,
        source_id: str,
        target_id: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> ConnectionCheck:
        """
        Check and, if allowed, commit a connection.

        Returns:
            The ConnectionCheck; on success its edge is the committed edge
        """
        check = self.can_connect(source_id, target_id, source_handle, target_handle)
        if not check.allowed:
            log_event(self.logger, "connection_rejected", level="INFO",
                      source_id=source_id, target_id=target_id, reason=check.reason)
            return check

        source_handle = normalize_handle(source_handle)
        edge = WorkflowEdge(
            id=make_edge_id(source_id, target_id, source_handle),
            source=source_id,
            target=target_id,
            source_handle=source_handle,
            target_handle=normalize_handle(target_handle),
        )
        self.graph.add_edge(edge)
        log_event(self.logger, "connection_added", edge_id=edge.id)
        self.validate()
        return check.model_copy(update={"edge": edge})

    def remove_edges(self, edge_ids: Iterable[str]) -> List[WorkflowEdge]:
        removed = [self.graph.remove_edge(edge_id) for edge_id in edge_ids if self.graph.has_edge(edge_id)]
        self.validate()
        return removed

    # ========================================================================
    # Snapshots
    # ========================================================================

    def load_snapshot(self, snapshot: Union[GraphSnapshot, Dict[str, Any]]) -> ValidationResult:
        """Replace the graph with a persisted snapshot and revalidate."""
        self.graph = WorkflowGraph.from_snapshot(snapshot)
        return self.validate()

    def snapshot(self) -> GraphSnapshot:
        return self.graph.to_snapshot()

    # ========================================================================
    # Execution
    # ========================================================================

    @property
    def is_executing(self) -> bool:
        return self._executor is not None and self._executor.is_running

    async def execute_workflow(self, options: Optional[ExecutionOptions] = None) -> WorkflowRunResult:
        """
        Run the graph.

        Raises:
            WorkflowExecutionError: Already running, graph has validation
                errors, or no start node could be resolved
        """
        if self.is_executing:
            raise WorkflowExecutionError("Workflow is already executing")

        validation = self.validate()
        if not validation.is_valid:
            messages = "; ".join(issue.message for issue in validation.errors)
            raise WorkflowExecutionError(f"Workflow has validation errors: {messages}")

        self._executor = WorkflowExecutor(
            self.graph.copy(),
            config=self.config,
            executors=self.executors,
            update_callback=self.update_callback,
        )
        self.last_result = await self._executor.execute(options)
        log_event(
            self.logger,
            "workflow_executed",
            execution_id=self.last_result.id,
            status=self.last_result.status.value,
            **self.last_result.summary,
        )
        return self.last_result

    def stop_execution(self) -> bool:
        """Stop the running execution; a no-op when nothing is running."""
        if self._executor is None:
            return False
        return self._executor.stop()

    def node_status(self, node_id: str) -> ExecutionStatus:
        """Status of a node in the current or last run (idle if never run)."""
        if self._executor is not None and self._executor.context is not None:
            return self._executor.context.status_of(node_id)
        return ExecutionStatus.IDLE
