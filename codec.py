"""
Wire codec for routing-table messages.

A message is a fixed-size block of 1 + 4*N signed 32-bit big-endian ints:

    [0]          sender index
    [1..N]       via labels, ord(label) for A.., 0 when unknown
    [N+1..2N]    costs, INFINITY sent as WIRE_INFINITY
    [2N+1..3N]   outgoing ports, 0 when unknown
    [3N+1..4N]   destination ports, 0 when unknown

encode and decode are exact inverses and do no I/O.
"""

from typing import List, Optional
import struct

from errors import MalformedMessage
from routing import INFINITY, Cost, Route, RoutingTable


WIRE_INFINITY = 2**31 - 1
INT_SIZE = 4


def message_length(node_count: int) -> int:
    """Number of ints in a message for a network of node_count routers."""
    return 1 + 4 * node_count


def message_size(node_count: int) -> int:
    """Size in bytes of a message for a network of node_count routers."""
    return INT_SIZE * message_length(node_count)


def _format(node_count: int) -> str:
    return f"!{message_length(node_count)}i"


def _encode_cost(cost: Cost) -> int:
    if cost == INFINITY:
        return WIRE_INFINITY
    if not 0 <= cost < WIRE_INFINITY:
        raise ValueError(f"cost {cost} cannot be sent on the wire")
    return int(cost)


def encode(table: RoutingTable) -> bytes:
    routes = table.routes
    values: List[int] = [table.owner]
    values.extend(ord(r.via) if r.via else 0 for r in routes)
    values.extend(_encode_cost(r.cost) for r in routes)
    values.extend(r.outgoing_port or 0 for r in routes)
    values.extend(r.destination_port or 0 for r in routes)
    return struct.pack(_format(len(routes)), *values)


def _decode_label(value: int, node_count: int) -> Optional[str]:
    if value == 0:
        return None
    if not ord("A") <= value < ord("A") + node_count:
        raise MalformedMessage(f"label code {value} does not name one of {node_count} nodes")
    return chr(value)


def _decode_port(value: int) -> Optional[int]:
    if value < 0:
        raise MalformedMessage(f"negative port {value}")
    return value or None


def _decode_cost(value: int) -> Cost:
    if value == WIRE_INFINITY:
        return INFINITY
    if value < 0:
        raise MalformedMessage(f"negative cost {value}")
    return value


def decode(message: bytes, node_count: int) -> RoutingTable:
    """
    Rebuild a routing table from a received message.

    Raises MalformedMessage if the size does not match node_count or a field
    is out of range.
    """
    expected = message_size(node_count)
    if len(message) != expected:
        raise MalformedMessage(f"expected {expected} bytes, got {len(message)}")

    values = struct.unpack(_format(node_count), message)
    owner = values[0]
    if not 0 <= owner < node_count:
        raise MalformedMessage(f"sender index {owner} out of range for {node_count} nodes")

    n = node_count
    labels = values[1 : n + 1]
    costs = values[n + 1 : 2 * n + 1]
    outgoing = values[2 * n + 1 : 3 * n + 1]
    destination = values[3 * n + 1 : 4 * n + 1]

    routes = [
        Route(
            via=_decode_label(labels[d], n),
            cost=_decode_cost(costs[d]),
            outgoing_port=_decode_port(outgoing[d]),
            destination_port=_decode_port(destination[d]),
        )
        for d in range(n)
    ]
    return RoutingTable(owner, routes)
