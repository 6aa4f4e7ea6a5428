"""
Simple Bellman–Ford-style distance-vector engine.

Relaxes a node's table against a single neighbour table, one message at a
time (asynchronous DV, not the synchronous round-based variant).
"""

from typing import Tuple
import logging

from algorithms import DistanceVectorEngine
from nodes import AddressPlan
from routing import INFINITY, Route, RoutingTable


logger = logging.getLogger(__name__)


class SimpleDistanceVectorEngine(DistanceVectorEngine):
    """
    One-step relaxation suitable for naive DV routers.

    There is no split horizon, poison reverse or route withdrawal: an
    advertised unreachable destination is skipped, so a route that was once
    installed is only ever replaced by a strictly cheaper one.
    """

    def __init__(self, plan: AddressPlan) -> None:
        self._plan = plan

    def relax(self, current: RoutingTable, received: RoutingTable) -> Tuple[RoutingTable, bool]:
        """
        Relax current against the table received from one neighbour.

        For every destination other than the owner, the route through the
        sender costs what the owner pays to reach the sender plus what the
        sender advertises. It replaces the existing row only when strictly
        cheaper; ties keep the existing row so replays and duplicates are
        no-ops. The replacement copies the sender's label and destination
        port and sends through the sender's address.
        """
        updated = current.copy()
        via_cost = current.cost(received.owner)
        if via_cost == INFINITY or len(received) != len(current):
            return updated, False

        changed = False
        for dest, advert in enumerate(received.routes):
            if dest == current.owner:
                continue
            if advert.cost == INFINITY:
                continue

            candidate = advert.cost + via_cost
            if updated.routes[dest].cost > candidate:
                logger.debug(
                    "node %s: route to %s via %s improves %s -> %s",
                    self._plan.label(current.owner),
                    self._plan.label(dest),
                    self._plan.label(received.owner),
                    updated.routes[dest].cost,
                    candidate,
                )
                updated.routes[dest] = Route(
                    via=advert.via,
                    cost=candidate,
                    outgoing_port=self._plan.address(received.owner),
                    destination_port=advert.destination_port,
                )
                changed = True

        return updated, changed
