"""
Router implementation for dvsim.

One DistanceVectorRouter per node holds that node's table and neighbour set.
The dispatch loop hands it raw messages; it decodes, relaxes and says
whether its table must be re-advertised.
"""

from typing import List, Optional, Sequence, Tuple
import logging

from algorithms import DistanceVectorEngine
from codec import decode, encode
from nodes import AddressPlan, RouterNode
from routing import Router, RoutingTable, initial_table
from topology_builder import Topology


logger = logging.getLogger(__name__)


class DistanceVectorRouter(Router):
    """
    Naive distance-vector router.

    The table is re-advertised to every neighbour whenever a message changes
    it, and once after the first message the router ever processes, so a
    single seed message reaches the whole connected component. The seeding
    root counts as unannounced until it has processed a message itself.
    """

    def __init__(
        self,
        node: RouterNode,
        plan: AddressPlan,
        table: RoutingTable,
        neighbors: Sequence[int],
        dv_engine: DistanceVectorEngine,
    ) -> None:
        self._node = node
        self._plan = plan
        self._table = table
        self._neighbors = tuple(neighbors)
        self._dv_engine = dv_engine
        self._announced = False
        # Instrumentation: messages relaxed and how many changed the table.
        self.messages_handled = 0
        self.table_changes = 0

    # --- Router interface ---------------------------------------------------

    @property
    def node(self) -> RouterNode:
        return self._node

    @property
    def table(self) -> RoutingTable:
        return self._table

    @property
    def neighbors(self) -> Tuple[int, ...]:
        return self._neighbors

    def advertisement(self) -> bytes:
        return encode(self._table)

    def handle_message(self, payload: bytes) -> Optional[bytes]:
        # MalformedMessage propagates; the caller drops the message.
        received = decode(payload, self._plan.node_count)
        changed = self.apply(received)

        first_contact = not self._announced
        self._announced = True
        if changed or first_contact:
            return self.advertisement()
        return None

    # --- Internal helpers ---------------------------------------------------

    def apply(self, received: RoutingTable) -> bool:
        """Relax against a decoded neighbour table and install the result."""
        updated, changed = self._dv_engine.relax(self._table, received)
        self.messages_handled += 1
        if changed:
            self._table = updated
            self.table_changes += 1
            logger.info(
                "router %s updated from %s: costs %s",
                self._node.label,
                self._plan.label(received.owner),
                self._table.costs(),
            )
        return changed


def build_routers(topology: Topology, dv_engine: DistanceVectorEngine) -> List[DistanceVectorRouter]:
    plan = topology.plan
    return [
        DistanceVectorRouter(
            node=plan.node(i),
            plan=plan,
            table=initial_table(topology, i),
            neighbors=topology.neighbors(i),
            dv_engine=dv_engine,
        )
        for i in range(topology.node_count)
    ]
