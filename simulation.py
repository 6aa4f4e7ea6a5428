"""
Dispatch loop for the distance-vector simulation.

A single scheduler drives N routers over a Transport: the root seeds one
neighbour, then the loop waits for any channel to become ready, lets each
ready router process one message, broadcasts the tables that must be
re-advertised, and checks convergence after every batch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import logging
import threading
import time

from algorithms import DistanceVectorEngine
from convergence import is_fixed_point, is_stable
from distance_vector_engine import SimpleDistanceVectorEngine
from errors import ConfigurationError, MalformedMessage
from routers import DistanceVectorRouter, build_routers
from routing import NetworkState
from snapshots import SnapshotWriter
from topology_builder import Topology
from transport import InMemoryTransport, Transport


logger = logging.getLogger(__name__)


class Termination(Enum):
    """
    Why the loop stopped.

    STABLE: every table is identical to table 0.
    QUIESCENT: no message is pending anywhere (or none arrived within the
        idle timeout on a blocking transport).
    CANCELLED: the stop event was set.
    MESSAGE_LIMIT: max_messages were received without settling.
    """

    STABLE = "stable"
    QUIESCENT = "quiescent"
    CANCELLED = "cancelled"
    MESSAGE_LIMIT = "message_limit"


@dataclass(frozen=True)
class SimulationSettings:
    root: int = 0
    idle_timeout: float = 1.0     # seconds without traffic before declaring quiet
    poll_interval: float = 0.1    # wait slice, bounds cancellation latency
    max_messages: Optional[int] = None


@dataclass
class SimulationResult:
    network: NetworkState
    termination: Termination
    fixed_point: bool
    messages_sent: int = 0
    messages_received: int = 0
    messages_dropped: int = 0
    batches: int = 0

    @property
    def converged(self) -> bool:
        """True when the run ended on its own at a state no message can change."""
        if self.termination == Termination.STABLE:
            return True
        return self.termination == Termination.QUIESCENT and self.fixed_point


class DistanceVectorSimulation:
    """
    Orchestrates N DistanceVectorRouters over one Transport.

    Tables are only touched by their own router inside process_batch, and the
    convergence checks run between batches, so they always see a consistent
    network state.
    """

    def __init__(
        self,
        topology: Topology,
        transport: Transport,
        dv_engine: Optional[DistanceVectorEngine] = None,
        settings: Optional[SimulationSettings] = None,
        snapshots: Optional[SnapshotWriter] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.topology = topology
        self.transport = transport
        self.dv_engine = dv_engine or SimpleDistanceVectorEngine(topology.plan)
        self.settings = settings or SimulationSettings()
        self.snapshots = snapshots
        self.stop_event = stop_event or threading.Event()

        if not topology.plan.contains(self.settings.root):
            raise ConfigurationError(f"root node {self.settings.root} is not in the network")

        self.routers: List[DistanceVectorRouter] = build_routers(topology, self.dv_engine)
        self.messages_sent = 0
        self.messages_received = 0
        self.messages_dropped = 0
        self.batches = 0

    @property
    def network(self) -> NetworkState:
        return [router.table for router in self.routers]

    def run(self) -> SimulationResult:
        """
        Run until stable, quiet, cancelled or over the message limit.

        TransportFailure aborts the run and propagates to the caller.
        """
        if self.snapshots is not None:
            self.snapshots.initialize(self.network)

        with self.transport:
            termination = self._loop()

        fixed_point = is_fixed_point(self.network, self.topology.neighbor_sets(), self.dv_engine)
        if termination == Termination.QUIESCENT and not fixed_point:
            logger.warning("network went quiet before reaching a fixed point")
        logger.info(
            "simulation finished: %s after %d batches (%d sent, %d received, %d dropped)",
            termination.value,
            self.batches,
            self.messages_sent,
            self.messages_received,
            self.messages_dropped,
        )
        return SimulationResult(
            network=self.network,
            termination=termination,
            fixed_point=fixed_point,
            messages_sent=self.messages_sent,
            messages_received=self.messages_received,
            messages_dropped=self.messages_dropped,
            batches=self.batches,
        )

    def _loop(self) -> Termination:
        if is_stable(self.network):
            return Termination.STABLE

        self.bootstrap()
        while True:
            if self.stop_event.is_set():
                return Termination.CANCELLED

            ready = self._wait_ready()
            if self.stop_event.is_set():
                return Termination.CANCELLED
            if not ready:
                return Termination.QUIESCENT

            self.process_batch(ready)
            if is_stable(self.network):
                return Termination.STABLE

            limit = self.settings.max_messages
            if limit is not None and self.messages_received >= limit:
                logger.warning("message limit %d reached before convergence", limit)
                return Termination.MESSAGE_LIMIT

    def bootstrap(self) -> None:
        """Send the root's initial table to its first neighbour only."""
        root = self.routers[self.settings.root]
        if not root.neighbors:
            logger.warning("root %s has no neighbours; nothing to seed", root.node.label)
            return
        first = root.neighbors[0]
        logger.info("root %s seeds its table to %s", root.node.label, self.topology.plan.label(first))
        self._send(root.node.index, first, root.advertisement())

    def process_batch(self, ready: List[int]) -> None:
        """Let every ready router process one pending message."""
        self.batches += 1
        for index in ready:
            payload = self.transport.receive(index)
            if payload is None:
                continue
            self.messages_received += 1

            router = self.routers[index]
            changes_before = router.table_changes
            try:
                advert = router.handle_message(payload)
            except MalformedMessage as exc:
                self.messages_dropped += 1
                logger.warning("router %s dropped a message: %s", router.node.label, exc)
                continue

            if self.snapshots is not None and router.table_changes != changes_before:
                self.snapshots.append(router.table)
            if advert is not None:
                self._broadcast(router, advert)

    def _broadcast(self, router: DistanceVectorRouter, advert: bytes) -> None:
        for neighbor in router.neighbors:
            self._send(router.node.index, neighbor, advert)

    def _send(self, src: int, dst: int, payload: bytes) -> None:
        self.transport.send(src, dst, payload)
        self.messages_sent += 1

    def _wait_ready(self) -> List[int]:
        if not self.transport.blocking:
            return self.transport.wait_ready(0)

        deadline = time.monotonic() + self.settings.idle_timeout
        while not self.stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return []
            ready = self.transport.wait_ready(min(self.settings.poll_interval, remaining))
            if ready:
                return ready
        return []


def run_simulation(
    topology: Topology,
    transport: Optional[Transport] = None,
    settings: Optional[SimulationSettings] = None,
    snapshots: Optional[SnapshotWriter] = None,
    stop_event: Optional[threading.Event] = None,
) -> SimulationResult:
    """
    Convenience wrapper: simulate topology, in process unless a transport is given.
    """
    sim = DistanceVectorSimulation(
        topology,
        transport or InMemoryTransport(topology.plan),
        settings=settings,
        snapshots=snapshots,
        stop_event=stop_event,
    )
    return sim.run()
