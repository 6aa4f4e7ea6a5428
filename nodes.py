"""
Node abstraction for dvsim.

Routers are identified by an index in [0, N). Each index also has a display
label (A, B, C, ...) and an address (base_port + index). The address doubles
as the UDP port of the node and as routing metadata in its table.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from errors import ConfigurationError


DEFAULT_NODE_COUNT = 6
DEFAULT_BASE_PORT = 10000


class Node(ABC):
    """Abstract node in dvsim."""

    @property
    @abstractmethod
    def id(self) -> str:
        """
        Stable identifier in a given network.
        """
        raise NotImplementedError


@dataclass(frozen=True)
class RouterNode(Node):
    index: int
    label: str
    port: int

    @property
    def id(self) -> str:
        return self.label


def label_for(index: int) -> str:
    return chr(ord("A") + index)


@dataclass(frozen=True)
class AddressPlan:
    """
    Maps node indices to labels and addresses for a network of node_count routers.
    """

    node_count: int = DEFAULT_NODE_COUNT
    base_port: int = DEFAULT_BASE_PORT

    def __post_init__(self) -> None:
        if not 1 <= self.node_count <= 26:
            raise ConfigurationError(f"node_count must be in [1, 26], got {self.node_count}")
        if self.base_port <= 0 or self.base_port + self.node_count > 65536:
            raise ConfigurationError(f"base_port {self.base_port} leaves no room for {self.node_count} nodes")

    def contains(self, index: int) -> bool:
        return 0 <= index < self.node_count

    def address(self, index: int) -> int:
        return self.base_port + index

    def label(self, index: int) -> str:
        return label_for(index)

    def index_for_label(self, label: str) -> Optional[int]:
        if len(label) != 1:
            return None
        index = ord(label.upper()) - ord("A")
        return index if self.contains(index) else None

    def index_for_address(self, address: int) -> Optional[int]:
        index = address - self.base_port
        return index if self.contains(index) else None

    def node(self, index: int) -> RouterNode:
        return RouterNode(index, self.label(index), self.address(index))

    def nodes(self) -> List[RouterNode]:
        return [self.node(i) for i in range(self.node_count)]

    def resolve(self, selector: Union[int, str]) -> int:
        """
        Resolve a node selector given as an index ("0", 0) or a label ("A").

        Raises ConfigurationError when the selector names no node.
        """
        text = str(selector).strip()
        if text.lstrip("-").isdigit():
            index: Optional[int] = int(text)
            if not self.contains(index):
                index = None
        else:
            index = self.index_for_label(text)
        if index is None:
            raise ConfigurationError(f"unknown node {selector!r} for a {self.node_count}-node network")
        return index
