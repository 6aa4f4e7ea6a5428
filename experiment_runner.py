"""
CLI to run a distance-vector simulation from a YAML configuration.

Reads config/simulation.yml (or --config), loads the topology it points at,
runs the dispatch loop seeded by the selected node, and prints that node's
final routing table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence
import argparse
import logging
import sys
import threading

from dijkstra_engine import SimpleDijkstraEngine
from errors import ConfigurationError, TransportFailure
from nodes import DEFAULT_BASE_PORT, DEFAULT_NODE_COUNT, AddressPlan
from routing import NetworkState, RoutingTable, is_reachable
from simulation import DistanceVectorSimulation, SimulationResult, SimulationSettings
from snapshots import SnapshotWriter
from topology_builder import Topology, load_topology
from transport import DEFAULT_HOST, make_transport


DEFAULT_CONFIG = Path(__file__).parent / "config" / "simulation.yml"
TRANSPORTS = ("memory", "udp")


@dataclass(frozen=True)
class SimulationConfig:
    topology: Path
    node_count: int = DEFAULT_NODE_COUNT
    base_port: int = DEFAULT_BASE_PORT
    host: str = DEFAULT_HOST
    transport: str = "udp"
    idle_timeout: float = 1.0
    poll_interval: float = 0.1
    max_messages: Optional[int] = None
    snapshot_dir: Optional[Path] = None

    def plan(self) -> AddressPlan:
        return AddressPlan(self.node_count, self.base_port)

    def settings(self, root: int) -> SimulationSettings:
        return SimulationSettings(
            root=root,
            idle_timeout=self.idle_timeout,
            poll_interval=self.poll_interval,
            max_messages=self.max_messages,
        )


def _number(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be a {kind.__name__}, got {value!r}") from exc
    if number < 0:
        raise ConfigurationError(f"{key} must not be negative, got {value!r}")
    return number


def load_config(path: Path) -> SimulationConfig:
    import yaml  # type: ignore

    try:
        data = yaml.safe_load(path.read_text())
    except OSError as exc:
        raise ConfigurationError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"config {path} must be a mapping")
    if "topology" not in data:
        raise ConfigurationError(f"config {path} does not name a topology file")

    transport = str(data.get("transport", "udp"))
    if transport not in TRANSPORTS:
        raise ConfigurationError(f"transport must be one of {TRANSPORTS}, got {transport!r}")

    # Relative paths are resolved against the config file's directory.
    base = path.parent
    snapshot_dir = data.get("snapshot_dir")
    config = SimulationConfig(
        topology=base / str(data["topology"]),
        node_count=_number(data, "node_count", int, DEFAULT_NODE_COUNT),
        base_port=_number(data, "base_port", int, DEFAULT_BASE_PORT),
        host=str(data.get("host", DEFAULT_HOST)),
        transport=transport,
        idle_timeout=_number(data, "idle_timeout", float, 1.0),
        poll_interval=_number(data, "poll_interval", float, 0.1),
        max_messages=_number(data, "max_messages", int, None),
        snapshot_dir=base / str(snapshot_dir) if snapshot_dir else None,
    )
    if config.poll_interval == 0:
        raise ConfigurationError("poll_interval must be positive")
    # Validates node_count and base_port.
    config.plan()
    return config


def run_from_config(
    config: SimulationConfig,
    topology: Topology,
    root: int,
    stop_event: Optional[threading.Event] = None,
) -> SimulationResult:
    plan = topology.plan
    snapshots = SnapshotWriter(config.snapshot_dir, plan) if config.snapshot_dir else None
    sim = DistanceVectorSimulation(
        topology,
        make_transport(config.transport, plan, host=config.host),
        settings=config.settings(root),
        snapshots=snapshots,
        stop_event=stop_event,
    )
    return sim.run()


def verify_against_dijkstra(topology: Topology, network: NetworkState) -> List[str]:
    """
    Compare converged DV costs with Dijkstra on the same links.

    Only meaningful for symmetric topologies whose nodes all heard the seed;
    returns one human-readable line per disagreeing (node, destination).
    """
    plan = topology.plan
    engine = SimpleDijkstraEngine()
    mismatches: List[str] = []
    for table in network:
        dist = engine.shortest_path_costs(topology.graph, plan.node(table.owner))
        expected: Dict[int, int] = {node.index: cost for node, cost in dist.items()}
        for dest, route in enumerate(table.routes):
            want = expected.get(dest)
            got = route.cost if is_reachable(route.cost) else None
            if want != got:
                mismatches.append(
                    f"{plan.label(table.owner)} -> {plan.label(dest)}: dv={got} dijkstra={want}"
                )
    return mismatches


def format_table(plan: AddressPlan, table: RoutingTable) -> str:
    lines = [
        f"routing table of {plan.label(table.owner)} (port {plan.address(table.owner)})",
        "dest  via  cost  outgoing  destination",
    ]
    for dest, route in enumerate(table.routes):
        cost = str(route.cost) if is_reachable(route.cost) else "inf"
        lines.append(
            f"{plan.label(dest):<5} {route.via or '-':<4} {cost:<5} "
            f"{route.outgoing_port or '-':<9} {route.destination_port or '-'}"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Naive distance-vector routing simulator")
    parser.add_argument("node", help="identity of this process: node label (A) or index (0); it seeds the network")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)
    parser.add_argument("--transport", choices=TRANSPORTS, default=None)
    parser.add_argument("--snapshot-dir", type=Path, default=None)
    parser.add_argument("--verify", action="store_true", help="check final costs against Dijkstra")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        config = load_config(args.config)
        if args.transport:
            config = replace(config, transport=args.transport)
        if args.snapshot_dir:
            config = replace(config, snapshot_dir=args.snapshot_dir)
        plan = config.plan()
        root = plan.resolve(args.node)
        topology = load_topology(config.topology, plan)
    except ConfigurationError as exc:
        print(f"[run] configuration error: {exc}", file=sys.stderr)
        return 2

    print(f"[run] node {plan.label(root)} seeding a {plan.node_count}-node network over {config.transport}")
    try:
        result = run_from_config(config, topology, root)
    except ConfigurationError as exc:
        print(f"[run] configuration error: {exc}", file=sys.stderr)
        return 2
    except TransportFailure as exc:
        print(f"[run] transport failure: {exc}", file=sys.stderr)
        return 1

    print(
        f"[run] {result.termination.value} after {result.batches} batches "
        f"(sent={result.messages_sent} received={result.messages_received} dropped={result.messages_dropped})"
    )
    print(format_table(plan, result.network[root]))

    if args.verify:
        mismatches = verify_against_dijkstra(topology, result.network)
        for line in mismatches:
            print(f"[run] mismatch {line}")
        if mismatches:
            return 1
        print("[run] all costs match Dijkstra")
    return 0


if __name__ == "__main__":
    sys.exit(main())
