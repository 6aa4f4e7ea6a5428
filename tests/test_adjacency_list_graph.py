"""
Unit tests for AdjacencyListGraph.
"""

from adjacency_list_graph import AdjacencyListGraph
from nodes import AddressPlan


plan = AddressPlan(3)


def test_add_nodes_and_edges():
    g = AdjacencyListGraph()

    a, b, c = plan.nodes()

    g.add_edge(a, b, 1)
    g.add_edge(a, c, 2)
    g.add_edge(b, c, 3)

    assert set(g.nodes()) == {a, b, c}

    assert g.outgoing(a) == {b: 1, c: 2}
    assert g.outgoing(b) == {c: 3}
    assert g.outgoing(c) == {}


def test_outgoing_returns_copy():
    g = AdjacencyListGraph()
    a, b, _ = plan.nodes()

    g.add_edge(a, b, 1)

    out = g.outgoing(a)
    out.clear()

    # internal structure must remain intact
    assert g.outgoing(a) == {b: 1}


def test_add_edge_overwrites_cost():
    g = AdjacencyListGraph()
    a, b, _ = plan.nodes()

    g.add_edge(a, b, 7)
    g.add_edge(a, b, 2)

    assert g.outgoing(a) == {b: 2}
