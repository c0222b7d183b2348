# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow API Routes

Stateless validation, connection checks and runs over posted graph snapshots.
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from flowgraph.core.config import Config, get_config
from flowgraph.core.errors import NotFoundError, ValidationError
from flowgraph.core.logging import get_logger
from flowgraph.engine.exceptions import WorkflowExecutionError
from flowgraph.executors import ExecutorRegistry
from flowgraph.graph_model import WorkflowGraph
from flowgraph.session import WorkflowSession
from flowgraph.templates import instantiate_template, list_templates
from flowgraph.workflow_models import (
    ConnectionCheck,
    ExecutionOptions,
    GraphSnapshot,
    ValidationResult,
    WorkflowRunResult,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])

logger = get_logger("api")


# ============================================================================
# Request Models
# ============================================================================

class ConnectionCheckRequest(BaseModel):
    """Candidate connection against a snapshot"""
    model_config = ConfigDict(populate_by_name=True)

    snapshot: GraphSnapshot
    source_id: str = Field(..., alias="sourceId")
    target_id: str = Field(..., alias="targetId")
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")


class RunRequest(BaseModel):
    """Snapshot to execute with run options"""
    snapshot: GraphSnapshot
    options: ExecutionOptions = Field(default_factory=ExecutionOptions)


# ============================================================================
# Dependencies
# ============================================================================

def get_engine_config() -> Config:
    """Engine configuration (overridable in tests)"""
    return get_config()


def get_executor_registry() -> Optional[ExecutorRegistry]:
    """Executor registry; None selects the built-in executors"""
    return None


def _graph_from(snapshot: GraphSnapshot) -> WorkflowGraph:
    try:
        return WorkflowGraph.from_snapshot(snapshot)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _validation_payload(result: ValidationResult) -> Dict[str, Any]:
    payload = result.model_dump(mode="json")
    payload["error_node_ids"] = sorted(result.error_node_ids)
    payload["error_edge_ids"] = sorted(result.error_edge_ids)
    payload["warning_node_ids"] = sorted(result.warning_node_ids)
    return payload


# ============================================================================
# Routes
# ============================================================================

@router.post("/validate")
async def validate_workflow(
    snapshot: GraphSnapshot,
    config: Config = Depends(get_engine_config),
) -> Dict[str, Any]:
    """Validate a graph snapshot"""
    session = WorkflowSession(_graph_from(snapshot), config=config)
    return _validation_payload(session.validation)


@router.post("/connections/check", response_model=ConnectionCheck)
async def check_connection(
    request: ConnectionCheckRequest,
    config: Config = Depends(get_engine_config),
) -> ConnectionCheck:
    """Check whether a connection may be added to a snapshot"""
    session = WorkflowSession(_graph_from(request.snapshot), config=config)
    return session.can_connect(
        request.source_id,
        request.target_id,
        request.source_handle,
        request.target_handle,
    )


@router.post("/run", response_model=WorkflowRunResult)
async def run_workflow(
    request: RunRequest,
    config: Config = Depends(get_engine_config),
    executors: Optional[ExecutorRegistry] = Depends(get_executor_registry),
) -> WorkflowRunResult:
    """Execute a graph snapshot and return the run result"""
    session = WorkflowSession(_graph_from(request.snapshot), config=config, executors=executors)
    try:
        return await session.execute_workflow(request.options)
    except WorkflowExecutionError as e:
        logger.warning(f"Run rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/templates")
async def get_templates() -> List[Dict[str, str]]:
    """List built-in templates"""
    return list_templates()


@router.get("/templates/{template_id}")
async def get_template(
    template_id: str,
    config: Config = Depends(get_engine_config),
) -> Dict[str, Any]:
    """Instantiate a built-in template and return its snapshot"""
    try:
        session = instantiate_template(template_id, WorkflowSession(config=config))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return session.graph.to_dict()
