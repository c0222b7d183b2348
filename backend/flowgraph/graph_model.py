# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Graph Model

Pure storage for nodes and edges plus adjacency queries. Nodes and edges are
kept in id-keyed dicts with outgoing/incoming indices so by-id lookups and
neighbor queries never rescan the edge list. No validation rules live here;
see connection_rules and graph_validator.
"""

from typing import Any, Dict, List, Optional, Union

from .core.errors import InvalidGraphError, NotFoundError
from .workflow_models import (
    GraphSnapshot,
    WorkflowEdge,
    WorkflowNode,
    make_edge_id,
    normalize_handle,
)
from .workflow_nodes import NodeType

__all__ = ["WorkflowGraph", "make_edge_id", "normalize_handle"]


class WorkflowGraph:
    """
    Directed graph of workflow nodes.

    Insertion order of nodes and edges is preserved so validation and
    traversal results are deterministic for a given snapshot.
    """

    def __init__(self):
        self._nodes: Dict[str, WorkflowNode] = {}
        self._edges: Dict[str, WorkflowEdge] = {}
        # node_id -> {edge_id: None}; dicts keep insertion order
        self._outgoing: Dict[str, Dict[str, None]] = {}
        self._incoming: Dict[str, Dict[str, None]] = {}

    # ========================================================================
    # Nodes
    # ========================================================================

    def add_node(self, node: WorkflowNode) -> WorkflowNode:
        if node.id in self._nodes:
            raise InvalidGraphError(f"Duplicate node id: {node.id}", field="nodes")
        self._nodes[node.id] = node
        self._outgoing[node.id] = {}
        self._incoming[node.id] = {}
        return node

    def replace_node(self, node: WorkflowNode) -> WorkflowNode:
        """Swap a node's payload/position in place, keeping its edges."""
        if node.id not in self._nodes:
            raise NotFoundError("Node", node.id)
        self._nodes[node.id] = node
        return node

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def remove_node(self, node_id: str) -> List[WorkflowEdge]:
        """
        Remove a node and cascade-delete its incident edges.

        Returns:
            The removed edges
        """
        if node_id not in self._nodes:
            raise NotFoundError("Node", node_id)

        incident = list(self._outgoing[node_id]) + list(self._incoming[node_id])
        removed = [self.remove_edge(edge_id) for edge_id in dict.fromkeys(incident)]

        del self._nodes[node_id]
        del self._outgoing[node_id]
        del self._incoming[node_id]
        return removed

    @property
    def nodes(self) -> List[WorkflowNode]:
        return list(self._nodes.values())

    def nodes_of_type(self, *kinds: NodeType) -> List[WorkflowNode]:
        return [node for node in self._nodes.values() if node.type in kinds]

    # ========================================================================
    # Edges
    # ========================================================================

    def add_edge(self, edge: WorkflowEdge) -> WorkflowEdge:
        """
        Store an edge. Callers go through connection_rules first; this only
        guards referential integrity.
        """
        if edge.source not in self._nodes:
            raise InvalidGraphError(f"Edge {edge.id} references unknown source node: {edge.source}", field="edges")
        if edge.target not in self._nodes:
            raise InvalidGraphError(f"Edge {edge.id} references unknown target node: {edge.target}", field="edges")
        if edge.source == edge.target:
            raise InvalidGraphError(f"Edge {edge.id} connects node {edge.source} to itself", field="edges")
        if edge.id in self._edges:
            raise InvalidGraphError(f"Duplicate edge id: {edge.id}", field="edges")

        self._edges[edge.id] = edge
        self._outgoing[edge.source][edge.id] = None
        self._incoming[edge.target][edge.id] = None
        return edge

    def get_edge(self, edge_id: str) -> Optional[WorkflowEdge]:
        return self._edges.get(edge_id)

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def find_edge(self, source: str, target: str, source_handle: Optional[str] = None) -> Optional[WorkflowEdge]:
        """Find an edge by its (source, target, sourceHandle) triple."""
        source_handle = normalize_handle(source_handle)
        for edge_id in self._outgoing.get(source, {}):
            edge = self._edges[edge_id]
            if edge.target == target and edge.source_handle == source_handle:
                return edge
        return None

    def remove_edge(self, edge_id: str) -> WorkflowEdge:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            raise NotFoundError("Edge", edge_id)
        self._outgoing[edge.source].pop(edge_id, None)
        self._incoming[edge.target].pop(edge_id, None)
        return edge

    @property
    def edges(self) -> List[WorkflowEdge]:
        return list(self._edges.values())

    # ========================================================================
    # Adjacency
    # ========================================================================

    def neighbors(self, node_id: str) -> List[WorkflowEdge]:
        """Outgoing edges of a node."""
        return [self._edges[edge_id] for edge_id in self._outgoing.get(node_id, {})]

    def incoming(self, node_id: str) -> List[WorkflowEdge]:
        """Incoming edges of a node."""
        return [self._edges[edge_id] for edge_id in self._incoming.get(node_id, {})]

    def successors(self, node_id: str) -> List[str]:
        return list(dict.fromkeys(edge.target for edge in self.neighbors(node_id)))

    def predecessors(self, node_id: str) -> List[str]:
        return list(dict.fromkeys(edge.source for edge in self.incoming(node_id)))

    def degree(self, node_id: str) -> int:
        return len(self._outgoing.get(node_id, {})) + len(self._incoming.get(node_id, {}))

    # ========================================================================
    # Snapshots
    # ========================================================================

    def to_snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(nodes=self.nodes, edges=self.edges)

    def to_dict(self) -> Dict[str, Any]:
        """Persisted {nodes, edges} shape with camelCase wire names."""
        return self.to_snapshot().model_dump(mode="json", by_alias=True)

    @classmethod
    def from_snapshot(cls, snapshot: Union[GraphSnapshot, Dict[str, Any]]) -> "WorkflowGraph":
        """
        Rehydrate a graph from a persisted snapshot.

        Edges are stored as-is; rule violations (cycles, type mismatches) are
        left for the validator to report.

        Raises:
            InvalidGraphError: Duplicate ids or edges with dangling endpoints
        """
        if not isinstance(snapshot, GraphSnapshot):
            snapshot = GraphSnapshot.model_validate(snapshot)

        graph = cls()
        for node in snapshot.nodes:
            graph.add_node(node)
        for edge in snapshot.edges:
            graph.add_edge(edge)
        return graph

    def copy(self) -> "WorkflowGraph":
        return WorkflowGraph.from_snapshot(self.to_snapshot().model_copy(deep=True))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowGraph):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"WorkflowGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"
