"""
Routing abstractions for dvsim.

Defines the per-node routing table, the Infinity sentinel, the initial
tables built from a topology, and the Router interface implemented in
routers.py.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union
import math

from nodes import RouterNode
from topology_builder import Topology


# Unreachable. Arithmetic with it is guarded by callers, never relied upon.
INFINITY = math.inf

Cost = Union[int, float]


def is_reachable(cost: Cost) -> bool:
    return cost != INFINITY


@dataclass
class Route:
    """
    Single row of a routing table: how the owner reaches one destination.
    """

    via: Optional[str] = None             # label of the neighbour on the best path
    cost: Cost = INFINITY
    outgoing_port: Optional[int] = None   # address the owner sends through
    destination_port: Optional[int] = None  # address of the final destination

    def as_tuple(self) -> Tuple[Optional[str], Cost, Optional[int], Optional[int]]:
        return self.via, self.cost, self.outgoing_port, self.destination_port


@dataclass
class RoutingTable:
    """
    One row per destination in [0, N), owned by exactly one node.
    """

    owner: int
    routes: List[Route]

    def __len__(self) -> int:
        return len(self.routes)

    def cost(self, dest: int) -> Cost:
        return self.routes[dest].cost

    def costs(self) -> List[Cost]:
        return [route.cost for route in self.routes]

    def copy(self) -> "RoutingTable":
        return RoutingTable(self.owner, [replace(route) for route in self.routes])


# Ordered collection of every node's table, indexed by node.
NetworkState = List[RoutingTable]


def initial_table(topology: Topology, index: int) -> RoutingTable:
    """
    Table a node starts with: itself at cost 0, direct neighbours at their
    link cost, everything else unreachable.
    """
    plan = topology.plan
    routes = [Route() for _ in range(plan.node_count)]
    routes[index] = Route(plan.label(index), 0, plan.address(index), plan.address(index))
    for neighbor, cost in topology.links(index).items():
        routes[neighbor] = Route(plan.label(neighbor), cost, plan.address(neighbor), plan.address(neighbor))
    return RoutingTable(index, routes)


def initial_network(topology: Topology) -> NetworkState:
    return [initial_table(topology, i) for i in range(topology.node_count)]


class Router(ABC):
    """
    Per-node actor: owns one routing table and reacts to neighbour updates.
    """

    @property
    @abstractmethod
    def node(self) -> RouterNode:
        """Node identity owned by this router."""
        raise NotImplementedError

    @property
    @abstractmethod
    def table(self) -> RoutingTable:
        """Current routing table; only this router mutates it."""
        raise NotImplementedError

    @property
    @abstractmethod
    def neighbors(self) -> Tuple[int, ...]:
        """Indices of directly linked nodes, in index order."""
        raise NotImplementedError

    @abstractmethod
    def advertisement(self) -> bytes:
        """Encoded copy of the current table, ready to send."""
        raise NotImplementedError

    @abstractmethod
    def handle_message(self, payload: bytes) -> Optional[bytes]:
        """
        Process one inbound message.

        Returns the advertisement to broadcast to every neighbour, or None
        when nothing needs to be sent.
        """
        raise NotImplementedError
