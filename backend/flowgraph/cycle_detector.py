# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cycle detection for workflow graphs.

detect_cycles runs a full three-colour DFS over every node (so disconnected
components are covered) and reports the first cycle found. would_create_cycle
is the cheap interactive check used before committing a single new edge.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .graph_model import WorkflowGraph


WHITE, GRAY, BLACK = 0, 1, 2


@dataclass(frozen=True)
class CycleInfo:
    """Outcome of full cycle detection"""
    has_cycle: bool
    cycle_nodes: Tuple[str, ...] = field(default_factory=tuple)
    # closed walk, first and last entries are the same node
    cycle_path: Tuple[str, ...] = field(default_factory=tuple)


def detect_cycles(graph: WorkflowGraph) -> CycleInfo:
    """
    Three-colour DFS cycle detection.

    A back-edge to a gray (on-stack) node closes a cycle; the path is rebuilt
    by following parent pointers from the current node back to that node.
    """
    color: Dict[str, int] = {node.id: WHITE for node in graph.nodes}
    parent: Dict[str, Optional[str]] = {}

    for root in color:
        if color[root] != WHITE:
            continue

        color[root] = GRAY
        parent[root] = None
        # explicit stack of (node_id, successor iterator) keeps deep chains off the call stack
        stack = [(root, iter(graph.successors(root)))]

        while stack:
            node_id, successors = stack[-1]
            advanced = False

            for neighbor in successors:
                state = color.get(neighbor, WHITE)
                if state == GRAY:
                    path = _rebuild_path(parent, node_id, neighbor)
                    return CycleInfo(
                        has_cycle=True,
                        cycle_nodes=tuple(dict.fromkeys(path)),
                        cycle_path=tuple(path),
                    )
                if state == WHITE:
                    color[neighbor] = GRAY
                    parent[neighbor] = node_id
                    stack.append((neighbor, iter(graph.successors(neighbor))))
                    advanced = True
                    break

            if not advanced:
                color[node_id] = BLACK
                stack.pop()

    return CycleInfo(has_cycle=False)


def _rebuild_path(parent: Dict[str, Optional[str]], current: str, start: str) -> List[str]:
    """Walk parents from current back to start; returns [start, ..., current, start]."""
    path = [current]
    node_id = current
    while node_id != start:
        node_id = parent[node_id]
        path.append(node_id)
    path.reverse()
    path.append(start)
    return path


def can_reach(graph: WorkflowGraph, from_id: str, to_id: str) -> bool:
    """Breadth-first reachability over existing edges."""
    if from_id == to_id:
        return True

    visited = {from_id}
    queue = deque([from_id])
    while queue:
        node_id = queue.popleft()
        for neighbor in graph.successors(node_id):
            if neighbor == to_id:
                return True
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)
    return False


def would_create_cycle(graph: WorkflowGraph, new_source: str, new_target: str) -> bool:
    """
    Would adding new_source -> new_target close a cycle?

    True exactly when new_target already reaches new_source.
    """
    return can_reach(graph, new_target, new_source)


def format_cycle_path(cycle_path: Tuple[str, ...], graph: Optional[WorkflowGraph] = None) -> str:
    """Render a cycle path with node labels when available: 'A → B → A'."""
    names = []
    for node_id in cycle_path:
        node = graph.get_node(node_id) if graph is not None else None
        names.append(node.label if node is not None else node_id)
    return " → ".join(names)
