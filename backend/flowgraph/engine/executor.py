# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Executor

Dependency-ordered, sequential execution of a workflow graph.

Traversal is breadth-first from the start set. Before a node runs, every
direct predecessor that has not settled is caught up depth-first, so a node
never starts before its inputs exist. Conditional kinds route along a single
handle: if/else along its evaluated branch, HTTP along success or error.
Nodes whose every incoming edge is dead are marked skipped, transitively, so
"never going to run" is distinguishable from "has not run yet".

A failure halts the run unless it is an HTTP failure, which routes through
the node's error handle instead.
"""

import asyncio
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from ..condition_evaluator import evaluate_conditions
from ..core.config import Config
from ..core.errors import SchemaError, sanitize_error_for_user
from ..core.logging import get_logger
from ..executors import ExecutorRegistry, build_default_registry, build_mock_registry
from ..expression_resolver import MISSING, deepest_match, describe_source, resolve_path, resolve_template
from ..graph_model import WorkflowGraph
from ..workflow_models import (
    ExecutionOptions,
    ExecutionStatus,
    RunStatus,
    WorkflowEdge,
    WorkflowNode,
    WorkflowRunResult,
)
from ..workflow_nodes import TRIGGER_TYPES, NodeType, TransformData
from .context import ExecutionContext, utc_now
from .exceptions import NodeTimeoutException, TransformMappingError, WorkflowExecutionError
from .logging import RunLogger


# payload fields that are never template-substituted
_LITERAL_FIELDS = {"type", "label", "description"}


class WorkflowExecutor:
    """
    Executes one workflow graph.

    One run at a time per executor; stop() is idempotent.
    """

    def __init__(
        self,
        graph: WorkflowGraph,
        config: Optional[Config] = None,
        executors: Optional[ExecutorRegistry] = None,
        update_callback: Optional[Callable] = None,
    ):
        self.graph = graph
        self.config = config or Config()
        self.executors = executors or build_default_registry(self.config)
        self.mock_executors = build_mock_registry()
        self.update_callback = update_callback
        self.logger = get_logger("engine", self.config)

        self.context: Optional[ExecutionContext] = None
        self._running = False
        self._stop_requested = False
        self._halted = False

        # effective per-run settings
        self._mock_mode = False
        self._node_timeout = self.config.node_timeout
        self._max_retries = self.config.max_retries
        self._trigger_payload: Dict[str, Any] = {}
        self._run_log: Optional[RunLogger] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> bool:
        """
        Request the current run to stop.

        The in-flight executor call is allowed to finish but its result is
        discarded and nothing else is dispatched. Stopping an idle or
        finished executor is a no-op.

        Returns:
            True if a running execution was signalled
        """
        if not self._running or self._stop_requested:
            return False
        self._stop_requested = True
        if self._run_log is not None:
            self._run_log.warning("⏹️  Stop requested")
        return True

    # ========================================================================
    # Run
    # ========================================================================

    async def execute(self, options: Optional[ExecutionOptions] = None) -> WorkflowRunResult:
        """
        Execute the workflow.

        Args:
            options: Start node, mock mode, watchdog timeout, retries, trigger payload

        Returns:
            WorkflowRunResult with statuses, outputs, path, errors and logs

        Raises:
            WorkflowExecutionError: Already running, no start nodes, unknown start node
        """
        if self._running:
            raise WorkflowExecutionError("Workflow is already executing")

        options = options or ExecutionOptions()
        start_ids = self._resolve_start_nodes(options.start_node_id)

        exec_id = f"exec_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        ctx = ExecutionContext(exec_id, [node.id for node in self.graph.nodes])
        self.context = ctx
        self._run_log = RunLogger(ctx, self.logger, self.config.execution_log_path)

        self._mock_mode = self.config.mock_mode if options.mock_mode is None else options.mock_mode
        self._node_timeout = options.node_timeout or self.config.node_timeout
        self._max_retries = self.config.max_retries if options.max_retries is None else options.max_retries
        self._trigger_payload = dict(options.trigger_payload)

        self._running = True
        self._stop_requested = False
        self._halted = False

        try:
            self._run_log.info(f"🚀 Starting workflow execution ({len(self.graph)} nodes)")
            self._run_log.info(f"📋 Execution ID: {exec_id}")
            if self._mock_mode:
                self._run_log.info("🧪 Mock mode: external executors are simulated")

            await self._traverse(start_ids, ctx)

            if self._stop_requested:
                status = RunStatus.STOPPED
                self._run_log.warning("⏹️  Workflow stopped")
            elif self._halted:
                status = RunStatus.FAILED
                self._run_log.error("⚠️  Workflow failed")
            else:
                status = RunStatus.COMPLETED
                self._run_log.success("🎉 Workflow completed!")

            ctx.finalize()
            return self._build_result(ctx, status)
        finally:
            self._running = False

    def _resolve_start_nodes(self, start_node_id: Optional[str]) -> List[str]:
        if start_node_id:
            if not self.graph.has_node(start_node_id):
                raise WorkflowExecutionError(f"Start node {start_node_id} not found")
            return [start_node_id]

        start_ids = [node.id for node in self.graph.nodes if not self.graph.incoming(node.id)]
        if not start_ids:
            start_ids = [node.id for node in self.graph.nodes if node.type in TRIGGER_TYPES]
        if not start_ids:
            raise WorkflowExecutionError("No start nodes found in workflow")
        return start_ids

    async def _traverse(self, start_ids: List[str], ctx: ExecutionContext) -> None:
        queue = deque(start_ids)
        visited: Set[str] = set()

        while queue and not self._should_stop():
            node_id = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)

            if ctx.status_of(node_id) == ExecutionStatus.SKIPPED:
                continue

            await self._run_with_dependencies(node_id, ctx, set())
            if self._should_stop():
                break

            status = ctx.status_of(node_id)
            if status not in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR):
                continue

            for edge in self.graph.neighbors(node_id):
                if self._edge_live(edge, ctx) and edge.target not in visited:
                    queue.append(edge.target)

    def _should_stop(self) -> bool:
        return self._halted or self._stop_requested

    # ========================================================================
    # Dependency Gate
    # ========================================================================

    async def _run_with_dependencies(self, node_id: str, ctx: ExecutionContext, path: Set[str]) -> None:
        """Catch up unsettled predecessors depth-first, then run the node."""
        if ctx.is_settled(node_id) or node_id in path:
            return
        path.add(node_id)

        incoming = self.graph.incoming(node_id)
        for edge in incoming:
            if not ctx.is_settled(edge.source):
                await self._run_with_dependencies(edge.source, ctx, path)
            if self._should_stop():
                return

        # catch-up may have skipped this node already
        if ctx.is_settled(node_id):
            return

        if incoming and all(self._edge_dead(edge, ctx) for edge in incoming):
            await self._mark_skipped(node_id, ctx, "all inputs skipped")
            return

        await self._run_node(self.graph.get_node(node_id), ctx)

    # ========================================================================
    # Routing
    # ========================================================================

    def _selected_handles(self, node: WorkflowNode, ctx: ExecutionContext) -> Optional[Set[Optional[str]]]:
        """Handles whose edges are taken; None means every outgoing edge."""
        status = ctx.status_of(node.id)
        if node.type == NodeType.IF_ELSE:
            if status != ExecutionStatus.SUCCESS:
                return set()
            return {ctx.get_output(node.id, {}).get("branch")}
        if node.type == NodeType.HTTP_ACTION:
            if status == ExecutionStatus.SUCCESS:
                return {"success", None}
            if status == ExecutionStatus.ERROR and ctx.has_output(node.id):
                return {"error"}
            return set()
        return None if status == ExecutionStatus.SUCCESS else set()

    def _edge_live(self, edge: WorkflowEdge, ctx: ExecutionContext) -> bool:
        if ctx.status_of(edge.source) not in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR):
            return False
        handles = self._selected_handles(self.graph.get_node(edge.source), ctx)
        return handles is None or edge.source_handle in handles

    def _edge_dead(self, edge: WorkflowEdge, ctx: ExecutionContext) -> bool:
        status = ctx.status_of(edge.source)
        if status == ExecutionStatus.SKIPPED:
            return True
        if status in (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR):
            return not self._edge_live(edge, ctx)
        return False

    async def _propagate_skips(self, node_id: str, ctx: ExecutionContext, reason: str) -> None:
        """Skip every downstream node whose inputs are now all dead."""
        for edge in self.graph.neighbors(node_id):
            if not self._edge_dead(edge, ctx):
                continue
            target = edge.target
            if ctx.status_of(target) != ExecutionStatus.IDLE:
                continue
            if all(self._edge_dead(e, ctx) for e in self.graph.incoming(target)):
                await self._mark_skipped(target, ctx, reason)

    async def _mark_skipped(self, node_id: str, ctx: ExecutionContext, reason: str) -> None:
        if not ctx.transition(node_id, ExecutionStatus.SKIPPED):
            return
        self._run_log.warning(f"⏭️  Skipped ({reason})", node_id)
        await self._send_update("node_state", {"node_id": node_id, "status": ExecutionStatus.SKIPPED.value})
        await self._propagate_skips(node_id, ctx, reason)

    # ========================================================================
    # Node Execution
    # ========================================================================

    async def _run_node(self, node: WorkflowNode, ctx: ExecutionContext) -> None:
        if self._should_stop() or not ctx.transition(node.id, ExecutionStatus.RUNNING):
            return

        self._run_log.info(f"▶️  Executing {node.label} ({node.type.value})", node.id)
        await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.RUNNING.value})

        attempts = 1
        try:
            output, attempts = await self._dispatch(node, ctx)
        except SchemaError:
            raise
        except Exception as e:
            attempts = getattr(e, "attempts", attempts)
            await self._handle_failure(node, ctx, e, attempts)
            return

        if self._stop_requested:
            ctx.record_stopped(node.id)
            self._run_log.warning("⏹️  Result discarded, execution stopped", node.id)
            await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.ERROR.value})
            return

        ctx.record_success(node.id, output, attempts=attempts)
        if node.type == NodeType.IF_ELSE:
            self._run_log.info(f"🔀 Branch: {output['branch']}", node.id)
        self._run_log.success(f"✅ {node.label} completed", node.id)
        await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.SUCCESS.value})

        await self._propagate_skips(node.id, ctx, self._skip_reason(node, ctx))

    async def _handle_failure(self, node: WorkflowNode, ctx: ExecutionContext, error: Exception, attempts: int) -> None:
        message = sanitize_error_for_user(error)

        if self._stop_requested:
            ctx.record_stopped(node.id)
            await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.ERROR.value})
            return

        if node.type == NodeType.HTTP_ACTION:
            # modeled outcome: continue along the error handle
            output = dict(getattr(error, "output", None) or {})
            output["error"] = message
            ctx.record_error(node.id, message, output=output, attempts=attempts)
            self._run_log.warning(f"↪️  {node.label} failed, following error branch: {message}", node.id)
            await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.ERROR.value})
            await self._propagate_skips(node.id, ctx, "branch: success")
            return

        ctx.record_error(node.id, message, attempts=attempts)
        self._halted = True
        self._run_log.error(f"❌ {node.label} failed: {message}", node.id)
        self._run_log.error("Workflow stopped due to error", node.id)
        await self._send_update("node_state", {"node_id": node.id, "status": ExecutionStatus.ERROR.value})

    def _skip_reason(self, node: WorkflowNode, ctx: ExecutionContext) -> str:
        if node.type == NodeType.IF_ELSE:
            branch = ctx.get_output(node.id, {}).get("branch")
            return f"branch: {'false' if branch == 'true' else 'true'}"
        if node.type == NodeType.HTTP_ACTION:
            return "branch: error"
        return "upstream skipped"

    async def _dispatch(self, node: WorkflowNode, ctx: ExecutionContext):
        """
        Run a node according to its kind.

        Returns:
            (output, attempts)
        """
        kind = node.type
        if kind == NodeType.MANUAL_TRIGGER:
            output = dict(self._trigger_payload)
            output.update({"triggered": True, "timestamp": utc_now()})
            return output, 1
        if kind == NodeType.IF_ELSE:
            scope = ctx.build_scope(self.graph.predecessors(node.id))
            return evaluate_conditions(node.data.conditions, scope).to_output(), 1
        if kind == NodeType.TRANSFORM:
            return self._run_transform(node, ctx), 1
        if kind in (
            NodeType.WEBHOOK_TRIGGER,
            NodeType.HTTP_ACTION,
            NodeType.EMAIL_ACTION,
            NodeType.SMS_ACTION,
            NodeType.DELAY,
        ):
            return await self._run_external(node, ctx)
        raise SchemaError(f"No execution strategy for node kind: {kind.value}", kind=kind.value)

    async def _run_external(self, node: WorkflowNode, ctx: ExecutionContext):
        registry = self.mock_executors if self._mock_mode else self.executors
        executor = registry.get(node.type)
        payload = self._resolve_payload(node, ctx)

        attempts = 0
        while True:
            attempts += 1
            try:
                output = await asyncio.wait_for(executor.execute(payload), timeout=self._node_timeout)
                return output, attempts
            except asyncio.TimeoutError:
                error = NodeTimeoutException(node.id, node.type.value, self._node_timeout)
            except SchemaError:
                raise
            except Exception as e:
                error = e

            if attempts > self._max_retries or self._stop_requested:
                error.attempts = attempts
                raise error
            self._run_log.warning(
                f"🔁 Retry {attempts}/{self._max_retries}: {sanitize_error_for_user(error)}", node.id
            )

    def _resolve_payload(self, node: WorkflowNode, ctx: ExecutionContext):
        """Copy of the node payload with {{ }} placeholders substituted."""
        scope = ctx.build_scope(self.graph.predecessors(node.id))

        def resolve(value: Any, key: Optional[str] = None) -> Any:
            if key in _LITERAL_FIELDS:
                return value
            if isinstance(value, str):
                return resolve_template(value, scope)
            if isinstance(value, list):
                return [resolve(item) for item in value]
            if isinstance(value, dict):
                return {k: resolve(v, k) for k, v in value.items()}
            return value

        raw = node.data.model_dump()
        resolved = {k: resolve(v, k) for k, v in raw.items()}
        return type(node.data).model_validate(resolved)

    def _run_transform(self, node: WorkflowNode, ctx: ExecutionContext) -> Dict[str, Any]:
        """
        Map upstream output into variables.

        All-or-nothing: any path mapping that resolves to nothing fails the
        whole node and no variable is written.
        """
        data: TransformData = node.data
        source = self._latest_upstream_output(node, ctx)

        variables: Dict[str, Any] = {}
        mapping_results = []
        for mapping in data.mappings:
            if mapping.type == "static":
                value = mapping.value
            else:
                value = resolve_path(source, str(mapping.value)) if source is not MISSING else MISSING
                if value is MISSING:
                    raise TransformMappingError(
                        node.id,
                        mapping.variable_name,
                        str(mapping.value),
                        self._mapping_error(mapping.variable_name, str(mapping.value), source),
                    )
            variables[mapping.variable_name] = value
            mapping_results.append({
                "variableName": mapping.variable_name,
                "value": value,
                "success": True,
                "sourceType": mapping.type,
            })

        ctx.variables.update(variables)
        return {"variables": variables, "mappingResults": mapping_results}

    def _latest_upstream_output(self, node: WorkflowNode, ctx: ExecutionContext) -> Any:
        predecessors = set(self.graph.predecessors(node.id))
        for node_id in reversed(ctx.execution_path):
            if node_id in predecessors and ctx.has_output(node_id):
                return ctx.get_output(node_id)
        # failed predecessor whose output was routed to its error handle
        for node_id in self.graph.predecessors(node.id):
            if ctx.has_output(node_id):
                return ctx.get_output(node_id)
        return MISSING

    @staticmethod
    def _mapping_error(variable_name: str, path: str, source: Any) -> str:
        message = f'Failed to extract path "{path}" for variable "{variable_name}". {describe_source(source)}'
        prefix, parent = deepest_match(source, path) if source is not MISSING else ("", MISSING)
        if prefix and isinstance(parent, dict):
            keys = ", ".join(str(key) for key in parent.keys()) or "none"
            message += f' Resolved up to "{prefix}", available keys there: {keys}.'
        return message

    # ========================================================================
    # Results & Updates
    # ========================================================================

    def _build_result(self, ctx: ExecutionContext, status: RunStatus) -> WorkflowRunResult:
        return WorkflowRunResult(
            id=ctx.execution_id,
            status=status,
            node_statuses=dict(ctx.node_statuses),
            node_results=dict(ctx.node_results),
            node_outputs=dict(ctx.node_outputs),
            variables=dict(ctx.variables),
            execution_path=list(ctx.execution_path),
            errors=list(ctx.errors),
            logs=list(ctx.logs),
            started_at=ctx.started_at,
            completed_at=ctx.completed_at,
            summary=ctx.summary(),
        )

    async def _send_update(self, update_type: str, data: Dict[str, Any]) -> None:
        """Send real-time update via callback"""
        if self.update_callback and self.context is not None:
            await self.update_callback({
                "type": update_type,
                "execution_id": self.context.execution_id,
                "node_states": {k: v.value for k, v in self.context.node_statuses.items()},
                **data
            })
