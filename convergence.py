"""
Convergence checks over a whole network state.
"""

from typing import Sequence

from algorithms import DistanceVectorEngine
from routing import NetworkState, RoutingTable


def tables_equal(a: RoutingTable, b: RoutingTable) -> bool:
    """
    Strict structural equality: every row's (via, cost, outgoing port,
    destination port) must match. The owner index is not compared.
    """
    if len(a) != len(b):
        return False
    return all(ra.as_tuple() == rb.as_tuple() for ra, rb in zip(a.routes, b.routes))


def is_stable(network: NetworkState) -> bool:
    """
    True when every table is structurally identical to table 0.

    This is deliberately the literal comparison, not cost agreement per
    destination: tables of different owners only match in degenerate
    networks (a single node, or nodes that all hold identical rows).
    """
    if not network:
        return True
    first = network[0]
    return all(tables_equal(first, table) for table in network[1:])


def is_fixed_point(
    network: NetworkState,
    neighbor_sets: Sequence[Sequence[int]],
    engine: DistanceVectorEngine,
) -> bool:
    """
    True when no node would change by relaxing against any neighbour's
    current table, i.e. no further message can alter any table.
    """
    for index, table in enumerate(network):
        for neighbor in neighbor_sets[index]:
            _, changed = engine.relax(table, network[neighbor])
            if changed:
                return False
    return True
