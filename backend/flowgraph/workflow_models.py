# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Models - Shared data models to prevent circular imports

Graph snapshot shapes (nodes, edges), validation results, connection checks
and execution records. Snapshot models keep the camelCase wire names through
aliases; everything else is snake_case.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .workflow_nodes import NodeData, NodeType


# ============================================================================
# Edge Identity
# ============================================================================

# canvas handle ids look like "source__true" / "target__input"
_HANDLE_PREFIXES = ("source__", "target__")
_PLACEHOLDER_HANDLES = {"", "source", "target"}


def normalize_handle(handle: Optional[str]) -> Optional[str]:
    """Strip canvas handle prefixes; placeholder handles mean no handle."""
    if handle is None:
        return None
    handle = str(handle).strip()
    for prefix in _HANDLE_PREFIXES:
        if handle.startswith(prefix):
            handle = handle[len(prefix):]
            break
    if handle in _PLACEHOLDER_HANDLES:
        return None
    return handle


def make_edge_id(source: str, target: str, source_handle: Optional[str] = None) -> str:
    """Deterministic edge id for the (source, target, sourceHandle) triple."""
    source_handle = normalize_handle(source_handle)
    if source_handle:
        return f"e_{source}_{source_handle}->{target}"
    return f"e_{source}->{target}"


# ============================================================================
# Graph Snapshot Models
# ============================================================================

class Position(BaseModel):
    """Canvas position (presentational only)"""
    x: float = 0
    y: float = 0


class WorkflowNode(BaseModel):
    """Single node in a workflow graph"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData

    @model_validator(mode="before")
    @classmethod
    def sync_kind(cls, values: Any) -> Any:
        """Fill the node kind from the payload tag or the payload tag from the kind."""
        if not isinstance(values, dict):
            return values
        values = dict(values)
        data = values.get("data")
        if isinstance(data, dict):
            data = dict(data)
            if "type" not in data and "type" in values:
                data["type"] = values["type"]
            values["data"] = data
            if "type" not in values and "type" in data:
                values["type"] = data["type"]
        elif data is not None and "type" not in values:
            values["type"] = getattr(data, "type", None)
        return values

    @model_validator(mode="after")
    def check_kind_matches_payload(self) -> "WorkflowNode":
        if self.data.type != self.type.value:
            raise ValueError(
                f"Node {self.id}: kind '{self.type.value}' does not match payload type '{self.data.type}'"
            )
        return self

    @property
    def label(self) -> str:
        return self.data.label or self.id


class WorkflowEdge(BaseModel):
    """Connection between a source output port and a target input port"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")

    @field_validator("source_handle", "target_handle", mode="before")
    @classmethod
    def strip_handle_prefix(cls, v):
        return normalize_handle(v)

    @model_validator(mode="after")
    def derive_id(self) -> "WorkflowEdge":
        if not self.id:
            self.id = make_edge_id(self.source, self.target, self.source_handle)
        return self

    @property
    def triple(self) -> Tuple[str, str, Optional[str]]:
        return (self.source, self.target, self.source_handle)


class GraphSnapshot(BaseModel):
    """Serializable {nodes, edges} pair used for persistence and the API"""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)


# ============================================================================
# Validation Models
# ============================================================================

class IssueType(str, Enum):
    CYCLE = "cycle"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_CONNECTION = "invalid_connection"
    MISSING_LABEL = "missing_label"
    ORPHAN = "orphan"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """Single validation finding, anchored to nodes and/or an edge"""
    model_config = ConfigDict(frozen=True)

    type: IssueType
    severity: Severity
    message: str
    node_ids: Tuple[str, ...] = ()
    edge_id: Optional[str] = None
    cycle_path: Tuple[str, ...] = ()
    missing_labels: Tuple[str, ...] = ()


class ValidationResult(BaseModel):
    """
    Immutable result of a full graph validation pass.

    Errors block execution readiness, warnings are advisory.
    """
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()

    @property
    def error_node_ids(self) -> frozenset:
        return frozenset(node_id for issue in self.errors for node_id in issue.node_ids)

    @property
    def error_edge_ids(self) -> frozenset:
        return frozenset(issue.edge_id for issue in self.errors if issue.edge_id)

    @property
    def warning_node_ids(self) -> frozenset:
        return frozenset(node_id for issue in self.warnings for node_id in issue.node_ids)


class ConnectionCheck(BaseModel):
    """Outcome of a connection request; returned, never raised"""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    errors: Tuple[str, ...] = ()
    # set by add_connection once the edge is committed
    edge: Optional[WorkflowEdge] = None


# ============================================================================
# Execution Models
# ============================================================================

class ExecutionStatus(str, Enum):
    """Per-node status within a single run"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class RunStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


class ExecutionOptions(BaseModel):
    """Run request options. Unset values fall back to the engine config."""
    model_config = ConfigDict(populate_by_name=True)

    start_node_id: Optional[str] = Field(None, alias="startNodeId")
    mock_mode: Optional[bool] = Field(None, alias="mockMode")
    node_timeout: Optional[float] = Field(None, alias="nodeTimeout", gt=0, description="Seconds")
    max_retries: Optional[int] = Field(None, alias="maxRetries", ge=0)
    trigger_payload: Dict[str, Any] = Field(default_factory=dict, alias="triggerPayload")


class ExecutionLog(BaseModel):
    """Single log entry during workflow execution"""
    timestamp: str
    node_id: Optional[str] = None
    level: str  # "info", "success", "error", "warning"
    message: str


class NodeError(BaseModel):
    """Failure recorded in the execution context"""
    node_id: str
    message: str


class NodeExecutionResult(BaseModel):
    """Outcome of one node within a run"""
    status: ExecutionStatus
    output: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration: Optional[float] = None
    attempts: int = 0


class WorkflowRunResult(BaseModel):
    """Result of workflow execution"""
    id: str
    status: RunStatus
    node_statuses: Dict[str, ExecutionStatus] = Field(default_factory=dict)
    node_results: Dict[str, NodeExecutionResult] = Field(default_factory=dict)
    node_outputs: Dict[str, Any] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)
    execution_path: List[str] = Field(default_factory=list)
    errors: List[NodeError] = Field(default_factory=list)
    logs: List[ExecutionLog] = Field(default_factory=list)
    started_at: str
    completed_at: Optional[str] = None
    summary: Dict[str, int] = Field(default_factory=dict)
