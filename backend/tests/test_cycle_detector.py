# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for cycle detection
"""

import itertools

from flowgraph.cycle_detector import can_reach, detect_cycles, format_cycle_path, would_create_cycle
from flowgraph.graph_model import WorkflowGraph
from flowgraph.workflow_models import make_edge_id

from tests.helpers import chain, make_edge


def cyclic_graph(*node_ids: str) -> WorkflowGraph:
    """Chain closed back onto its first node"""
    graph = chain(*node_ids)
    graph.add_edge(make_edge(node_ids[-1], node_ids[0]))
    return graph


def test_acyclic_chain():
    """A straight chain has no cycle"""
    info = detect_cycles(chain("a", "b", "c"))
    assert not info.has_cycle
    assert info.cycle_path == ()


def test_empty_graph():
    """An empty graph has no cycle"""
    assert not detect_cycles(WorkflowGraph()).has_cycle


def test_cycle_path_is_closed():
    """The reported path starts and ends on the same node"""
    info = detect_cycles(cyclic_graph("a", "b", "c"))
    assert info.has_cycle
    assert info.cycle_path == ("a", "b", "c", "a")
    assert set(info.cycle_nodes) == {"a", "b", "c"}


def test_cycle_away_from_first_node():
    """A cycle not passing through the DFS root is still found"""
    graph = chain("x", "y", "z")
    graph.add_edge(make_edge("z", "y"))
    info = detect_cycles(graph)
    assert info.has_cycle
    assert info.cycle_path[0] == info.cycle_path[-1]
    assert set(info.cycle_nodes) == {"y", "z"}


def test_cycle_in_disconnected_component():
    """Every component is searched"""
    graph = chain("solo")
    for node in cyclic_graph("p", "q").nodes:
        graph.add_node(node)
    graph.add_edge(make_edge("p", "q"))
    graph.add_edge(make_edge("q", "p"))

    info = detect_cycles(graph)
    assert info.has_cycle
    assert info.cycle_path == ("p", "q", "p")


def test_can_reach():
    """Reachability follows edge direction"""
    graph = chain("a", "b", "c")
    assert can_reach(graph, "a", "c")
    assert not can_reach(graph, "c", "a")
    assert can_reach(graph, "b", "b")


def test_would_create_cycle():
    """Closing a chain is detected before the edge exists"""
    graph = chain("a", "b", "c")
    assert would_create_cycle(graph, "c", "a")
    assert not would_create_cycle(graph, "a", "c")


def test_interactive_check_agrees_with_full_detection():
    """would_create_cycle predicts what detect_cycles finds after the edge is added"""
    graph = chain("a", "b", "c", "d")
    graph.add_edge(make_edge("a", "c"))

    for source, target in itertools.permutations(["a", "b", "c", "d"], 2):
        if graph.has_edge(make_edge_id(source, target)):
            continue
        predicted = would_create_cycle(graph, source, target)
        candidate = graph.copy()
        candidate.add_edge(make_edge(source, target))
        assert predicted == detect_cycles(candidate).has_cycle, (source, target)


def test_format_cycle_path_uses_labels():
    """Labels replace ids when a graph is given"""
    graph = cyclic_graph("a", "b")
    assert format_cycle_path(("a", "b", "a"), graph) == "a → b → a"
    assert format_cycle_path(("x", "y")) == "x → y"
