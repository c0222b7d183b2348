# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared builders for engine tests
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Union

from flowgraph.executors import EXTERNAL_KINDS, ExecutorRegistry, NodeExecutor
from flowgraph.graph_model import WorkflowGraph
from flowgraph.workflow_models import WorkflowEdge, WorkflowNode
from flowgraph.workflow_nodes import NodeType, parse_node_data


def make_node(node_id: str, kind: Union[str, NodeType], **data) -> WorkflowNode:
    """Node with the given payload fields (camelCase or snake_case)"""
    kind = NodeType(kind)
    return WorkflowNode(id=node_id, type=kind, data=parse_node_data({"type": kind.value, **data}))


def make_edge(source: str, target: str, handle: Optional[str] = None) -> WorkflowEdge:
    return WorkflowEdge(source=source, target=target, source_handle=handle)


def build_graph(nodes: Iterable[WorkflowNode], edges: Iterable[WorkflowEdge] = ()) -> WorkflowGraph:
    graph = WorkflowGraph()
    for node in nodes:
        graph.add_node(node)
    for edge in edges:
        graph.add_edge(edge)
    return graph


def chain(*node_ids: str) -> WorkflowGraph:
    """Transform nodes wired in a straight line"""
    nodes = [make_node(node_id, NodeType.TRANSFORM, label=node_id) for node_id in node_ids]
    edges = [make_edge(a, b) for a, b in zip(node_ids, node_ids[1:])]
    return build_graph(nodes, edges)


class StubExecutor(NodeExecutor):
    """
    Scripted executor.

    Each call consumes the next entry of responses; the last entry repeats.
    Exceptions are raised, anything else is returned as the output.
    """

    def __init__(self, *responses: Any, delay: float = 0):
        self.responses: List[Any] = list(responses) or [{"ok": True}]
        self.delay = delay
        self.calls: List[Any] = []

    async def execute(self, data) -> Dict[str, Any]:
        self.calls.append(data)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


def stub_registry(overrides: Optional[Dict[NodeType, NodeExecutor]] = None) -> ExecutorRegistry:
    """Registry with a default StubExecutor for every external kind"""
    registry = ExecutorRegistry()
    for kind in EXTERNAL_KINDS:
        registry.register(kind, StubExecutor())
    for kind, executor in (overrides or {}).items():
        registry.register(kind, executor)
    return registry
