# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Graph Validator

One full, side-effect-free pass over a graph producing a ValidationResult:

Errors (block execution readiness):
    cycle              - first directed cycle found, with its path
    type_mismatch      - edge whose produced type cannot flow into the input
    invalid_connection - edge referencing a port the node kind does not have

Warnings (advisory):
    missing_label      - conditional node with an unwired output label
    orphan             - non-trigger node with no incident edges
"""

from typing import List

from .core.logging import get_logger, log_event
from .cycle_detector import detect_cycles
from .graph_model import WorkflowGraph
from .ports import DEFAULT_INPUT_PORT, DEFAULT_OUTPUT_PORT, is_compatible_with_any, schema_for
from .workflow_models import IssueType, Severity, ValidationIssue, ValidationResult

logger = get_logger("validation")


def validate_workflow_graph(graph: WorkflowGraph) -> ValidationResult:
    """
    Validate the whole graph.

    Idempotent: the same graph always yields an equal result.

    Raises:
        SchemaError: A node kind has no port schema (programming error)
    """
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    errors.extend(_check_cycles(graph))
    errors.extend(_check_edges(graph))
    warnings.extend(_check_branches(graph))
    warnings.extend(_check_orphans(graph))

    result = ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )

    log_event(
        logger,
        "graph_validated",
        level="DEBUG",
        node_count=len(graph),
        edge_count=len(graph.edges),
        error_count=len(errors),
        warning_count=len(warnings),
    )
    return result


# ============================================================================
# Checks
# ============================================================================

def _check_cycles(graph: WorkflowGraph) -> List[ValidationIssue]:
    info = detect_cycles(graph)
    if not info.has_cycle:
        return []
    return [
        ValidationIssue(
            type=IssueType.CYCLE,
            severity=Severity.ERROR,
            message=f"Cycle detected: {' → '.join(info.cycle_path)}",
            node_ids=info.cycle_nodes,
            cycle_path=info.cycle_path,
        )
    ]


def _check_edges(graph: WorkflowGraph) -> List[ValidationIssue]:
    issues = []
    for edge in graph.edges:
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        source_schema = schema_for(source.type)
        target_schema = schema_for(target.type)

        source_port = source_schema.get_output(edge.source_handle)
        target_port = target_schema.get_input(edge.target_handle)

        if source_port is None or target_port is None:
            missing = (
                f'output "{edge.source_handle or DEFAULT_OUTPUT_PORT}" on "{source.label}"'
                if source_port is None
                else f'input "{edge.target_handle or DEFAULT_INPUT_PORT}" on "{target.label}"'
            )
            issues.append(
                ValidationIssue(
                    type=IssueType.INVALID_CONNECTION,
                    severity=Severity.ERROR,
                    message=f"Invalid connection: no {missing}",
                    node_ids=(edge.source, edge.target),
                    edge_id=edge.id,
                )
            )
            continue

        if not is_compatible_with_any(source_port.data_type, target_port.accepted_types):
            accepted = ", ".join(t.value for t in target_port.accepted_types)
            issues.append(
                ValidationIssue(
                    type=IssueType.TYPE_MISMATCH,
                    severity=Severity.ERROR,
                    message=f'Type mismatch on edge: "{source_port.data_type.value}" → "{accepted}"',
                    node_ids=(edge.source, edge.target),
                    edge_id=edge.id,
                )
            )
    return issues


def _check_branches(graph: WorkflowGraph) -> List[ValidationIssue]:
    issues = []
    for node in graph.nodes:
        schema = schema_for(node.type)
        if not schema.is_conditional:
            continue

        used = {edge.source_handle or DEFAULT_OUTPUT_PORT for edge in graph.neighbors(node.id)}
        missing = tuple(label for label in schema.required_labels if label not in used)
        if missing:
            issues.append(
                ValidationIssue(
                    type=IssueType.MISSING_LABEL,
                    severity=Severity.WARNING,
                    message=f'"{node.label}" missing branches: {", ".join(missing)}',
                    node_ids=(node.id,),
                    missing_labels=missing,
                )
            )
    return issues


def _check_orphans(graph: WorkflowGraph) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            type=IssueType.ORPHAN,
            severity=Severity.WARNING,
            message=f'"{node.label}" is not connected to any other node',
            node_ids=(node.id,),
        )
        for node in graph.nodes
        if not node.type.is_trigger and graph.degree(node.id) == 0
    ]
