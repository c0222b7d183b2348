# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Context

Per-run record of node outputs, derived variables, the realized execution
path, collected errors and per-node statuses. The engine is the only writer;
the expression resolver, condition evaluator and status overlays only read.
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone

from ..workflow_models import ExecutionLog, ExecutionStatus, NodeError, NodeExecutionResult


# allowed status transitions within one run
_TRANSITIONS = {
    ExecutionStatus.IDLE: {ExecutionStatus.RUNNING, ExecutionStatus.SKIPPED},
    ExecutionStatus.RUNNING: {ExecutionStatus.SUCCESS, ExecutionStatus.ERROR},
    ExecutionStatus.SUCCESS: set(),
    ExecutionStatus.ERROR: set(),
    ExecutionStatus.SKIPPED: set(),
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExecutionContext:
    """
    Execution context for a workflow run.

    Tracks:
    - Node outputs (raw executor results)
    - Variables written by transform nodes
    - Execution path (node ids in the order they actually ran)
    - Errors as {node_id, message}
    - Node statuses, all starting idle
    """

    def __init__(self, execution_id: str, node_ids: Iterable[str]):
        self.execution_id = execution_id
        self.started_at = utc_now()
        self.completed_at: Optional[str] = None

        self.node_outputs: Dict[str, Any] = {}
        self.variables: Dict[str, Any] = {}
        self.execution_path: List[str] = []
        self.errors: List[NodeError] = []
        self.logs: List[ExecutionLog] = []

        self.node_statuses: Dict[str, ExecutionStatus] = {
            node_id: ExecutionStatus.IDLE for node_id in node_ids
        }
        self.node_results: Dict[str, NodeExecutionResult] = {}

    # ========================================================================
    # Status
    # ========================================================================

    def status_of(self, node_id: str) -> ExecutionStatus:
        return self.node_statuses.get(node_id, ExecutionStatus.IDLE)

    def transition(self, node_id: str, status: ExecutionStatus) -> bool:
        """
        Move a node to a new status if the transition is legal.

        Returns:
            False when the transition would break monotonicity (e.g. skipped -> running)
        """
        current = self.status_of(node_id)
        if status not in _TRANSITIONS[current]:
            return False
        self.node_statuses[node_id] = status

        result = self.node_results.get(node_id)
        if result is None:
            result = NodeExecutionResult(status=status)
            self.node_results[node_id] = result
        result.status = status
        if status == ExecutionStatus.RUNNING:
            result.started_at = utc_now()
        return True

    def is_settled(self, node_id: str) -> bool:
        """True once a node has reached success, error or skipped."""
        return self.status_of(node_id) in (
            ExecutionStatus.SUCCESS,
            ExecutionStatus.ERROR,
            ExecutionStatus.SKIPPED,
        )

    def has_output(self, node_id: str) -> bool:
        return node_id in self.node_outputs

    # ========================================================================
    # Recording
    # ========================================================================

    def record_success(self, node_id: str, output: Any, attempts: int = 1) -> None:
        self.node_outputs[node_id] = output
        self.execution_path.append(node_id)
        self.transition(node_id, ExecutionStatus.SUCCESS)
        self._complete(node_id, output=output, attempts=attempts)

    def record_error(self, node_id: str, message: str, output: Any = None, attempts: int = 1) -> None:
        """
        Record a node failure. An output (e.g. an HTTP error payload routed
        to the node's error handle) is stored when given.
        Failed nodes are not part of the execution path.
        """
        if output is not None:
            self.node_outputs[node_id] = output
        self.errors.append(NodeError(node_id=node_id, message=message))
        self.transition(node_id, ExecutionStatus.ERROR)
        self._complete(node_id, output=output, error=message, attempts=attempts)

    def record_stopped(self, node_id: str, message: str = "Execution stopped") -> None:
        """Discard an in-flight result after stop; the node ends in error."""
        self.errors.append(NodeError(node_id=node_id, message=message))
        self.transition(node_id, ExecutionStatus.ERROR)
        self._complete(node_id, error=message)

    def _complete(self, node_id: str, output: Any = None, error: Optional[str] = None, attempts: int = 1) -> None:
        result = self.node_results[node_id]
        result.output = output
        result.error = error
        result.attempts = attempts
        result.completed_at = utc_now()
        if result.started_at:
            started = datetime.fromisoformat(result.started_at)
            completed = datetime.fromisoformat(result.completed_at)
            result.duration = (completed - started).total_seconds()

    # ========================================================================
    # Reading
    # ========================================================================

    def get_output(self, node_id: str, default: Any = None) -> Any:
        return self.node_outputs.get(node_id, default)

    def build_scope(self, predecessor_ids: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Evaluation scope for templates and conditions.

        Keys of every executed node's dict output are visible at the top level
        (later nodes shadow earlier ones, direct predecessors shadow all),
        followed by variables. "$node" and "$vars" give explicit access.
        """
        scope: Dict[str, Any] = {}
        for node_id in self.execution_path:
            output = self.node_outputs.get(node_id)
            if isinstance(output, dict):
                scope.update(output)
        for node_id in predecessor_ids:
            output = self.node_outputs.get(node_id)
            if isinstance(output, dict):
                scope.update(output)
        scope.update(self.variables)
        scope["$node"] = dict(self.node_outputs)
        scope["$vars"] = dict(self.variables)
        return scope

    def summary(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in ExecutionStatus}
        for status in self.node_statuses.values():
            counts[status.value] += 1
        return counts

    def finalize(self) -> None:
        """Mark execution as complete"""
        self.completed_at = utc_now()
