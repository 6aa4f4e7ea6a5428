"""
Topology loading for dvsim.

A topology file is a sequence of CSV records

    SOURCE_LABEL,SOURCE_PORT,NEIGHBOR_PORT,COST

one per directed link, e.g. ``A,10000,10001,4``. Parsing is permissive:
records naming unknown labels or ports, self links, and records whose cost
is not a non-negative integer are skipped, not treated as fatal.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
import csv
import logging

from adjacency_list_graph import AdjacencyListGraph
from errors import ConfigurationError
from nodes import AddressPlan


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Topology:
    """
    Parsed topology: the address plan plus the directed link graph.

    Neighbour sets are ordered by node index and fixed once loaded.
    """

    plan: AddressPlan
    graph: AdjacencyListGraph

    @property
    def node_count(self) -> int:
        return self.plan.node_count

    def links(self, index: int) -> Dict[int, int]:
        """Direct links of node index as neighbour index -> cost."""
        out = self.graph.outgoing(self.plan.node(index))
        return {nbr.index: cost for nbr, cost in sorted(out.items(), key=lambda kv: kv[0].index)}

    def neighbors(self, index: int) -> Tuple[int, ...]:
        return tuple(self.links(index))

    def neighbor_sets(self) -> List[Tuple[int, ...]]:
        return [self.neighbors(i) for i in range(self.node_count)]


def parse_record(fields: List[str], plan: AddressPlan) -> Optional[Tuple[int, int, int]]:
    """
    Turn one CSV record into (source, neighbour, cost), or None if it is unusable.
    """
    if len(fields) < 4:
        return None
    source = plan.index_for_label(fields[0].strip())
    if source is None:
        return None
    try:
        neighbor_port = int(fields[2].strip())
        cost = int(fields[3].strip())
    except ValueError:
        return None
    neighbor = plan.index_for_address(neighbor_port)
    if neighbor is None or neighbor == source or cost < 0:
        return None
    return source, neighbor, cost


def parse_topology(lines: Iterable[str], plan: AddressPlan) -> Topology:
    graph = AdjacencyListGraph()
    for node in plan.nodes():
        graph.add_node(node)

    rows = (line for line in lines if line.strip() and not line.lstrip().startswith("#"))
    for fields in csv.reader(rows):
        record = parse_record(fields, plan)
        if record is None:
            logger.debug("ignoring topology record %r", fields)
            continue
        source, neighbor, cost = record
        graph.add_edge(plan.node(source), plan.node(neighbor), cost)

    return Topology(plan, graph)


def load_topology(path: Path, plan: AddressPlan) -> Topology:
    try:
        with path.open(newline="") as f:
            topology = parse_topology(f, plan)
    except OSError as exc:
        raise ConfigurationError(f"cannot read topology file {path}: {exc}") from exc

    logger.info(
        "loaded topology from %s: %d nodes, %d links",
        path,
        topology.node_count,
        sum(len(topology.links(i)) for i in range(topology.node_count)),
    )
    return topology


def build_topology(
    plan: AddressPlan,
    links: Iterable[Tuple[int, int, int]],
    bidirectional: bool = True,
) -> Topology:
    """
    Build a topology directly from (a, b, cost) triples.

    With bidirectional=True each triple installs both a -> b and b -> a.
    """
    graph = AdjacencyListGraph()
    for node in plan.nodes():
        graph.add_node(node)
    for a, b, cost in links:
        if not (plan.contains(a) and plan.contains(b)) or a == b:
            raise ConfigurationError(f"invalid link {a} -> {b}")
        if cost < 0:
            raise ConfigurationError(f"negative cost on link {a} -> {b}")
        graph.add_edge(plan.node(a), plan.node(b), cost)
        if bidirectional:
            graph.add_edge(plan.node(b), plan.node(a), cost)
    return Topology(plan, graph)
