# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Connection Rule Checker

Decides whether a candidate edge may be committed to the graph. Rules run in
a fixed order: endpoints exist, no self-connection, no trigger-to-trigger,
no cycle, compatible port types, no duplicate. A missing endpoint stops the
check immediately; otherwise every violated rule is collected and the first
one becomes the reason shown to the user.
"""

from typing import List, Optional

from .core.logging import get_logger, log_event
from .cycle_detector import would_create_cycle
from .graph_model import WorkflowGraph, normalize_handle
from .ports import is_compatible_with_any, schema_for
from .workflow_models import ConnectionCheck


SOURCE_NOT_FOUND = "Source node not found"
TARGET_NOT_FOUND = "Target node not found"
SELF_CONNECTION = "A node cannot connect to itself"
TRIGGER_TO_TRIGGER = "Trigger nodes cannot be connected to each other"
CREATES_CYCLE = "This connection would create a cycle in the workflow"
DUPLICATE_CONNECTION = "This connection already exists"

logger = get_logger("validation")


def can_connect(
    graph: WorkflowGraph,
    source_id: str,
    target_id: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> ConnectionCheck:
    """
    Check a candidate connection without mutating the graph.

    Args:
        graph: Current graph
        source_id: Source node id
        target_id: Target node id
        source_handle: Output port label (None means the default "output")
        target_handle: Input port label (None means the default "input")

    Returns:
        ConnectionCheck with allowed flag, first reason and all violations
    """
    source_handle = normalize_handle(source_handle)
    target_handle = normalize_handle(target_handle)

    # Rule 1: both endpoints exist
    source = graph.get_node(source_id)
    if source is None:
        return _reject(source_id, target_id, [SOURCE_NOT_FOUND])
    target = graph.get_node(target_id)
    if target is None:
        return _reject(source_id, target_id, [TARGET_NOT_FOUND])

    errors: List[str] = []

    # Rule 2: no self-connection
    is_self = source_id == target_id
    if is_self:
        errors.append(SELF_CONNECTION)

    # Rule 3: triggers never feed triggers
    if source.type.is_trigger and target.type.is_trigger:
        errors.append(TRIGGER_TO_TRIGGER)

    # Rule 4: no cycles (a self-connection is already reported above)
    if not is_self and would_create_cycle(graph, source_id, target_id):
        errors.append(CREATES_CYCLE)

    # Rule 5: port type compatibility
    port_error = check_port_types(source, target, source_handle, target_handle)
    if port_error:
        errors.append(port_error)

    # Rule 6: no duplicate (source, target, sourceHandle)
    if graph.find_edge(source_id, target_id, source_handle) is not None:
        errors.append(DUPLICATE_CONNECTION)

    if errors:
        return _reject(source_id, target_id, errors)
    return ConnectionCheck(allowed=True)


def check_port_types(source, target, source_handle: Optional[str], target_handle: Optional[str]) -> Optional[str]:
    """
    Resolve both ports and compare their types.

    Returns:
        None if compatible, otherwise a human-readable message
    """
    source_schema = schema_for(source.type)
    target_schema = schema_for(target.type)

    source_port = source_schema.get_output(source_handle)
    if source_port is None:
        return f'Source port "{source_handle or "output"}" not found on {source.type.value} node'

    target_port = target_schema.get_input(target_handle)
    if target_port is None:
        return f'Target port "{target_handle or "input"}" not found on {target.type.value} node'

    if not is_compatible_with_any(source_port.data_type, target_port.accepted_types):
        accepted = ", ".join(t.value for t in target_port.accepted_types)
        return f'Type mismatch: "{source_port.data_type.value}" cannot connect to "{accepted}"'

    return None


def _reject(source_id: str, target_id: str, errors: List[str]) -> ConnectionCheck:
    log_event(
        logger,
        "connection_rejected",
        level="DEBUG",
        source_id=source_id,
        target_id=target_id,
        reasons=errors,
    )
    return ConnectionCheck(allowed=False, reason=errors[0], errors=tuple(errors))
