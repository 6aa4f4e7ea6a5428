"""
Per-node message channels for dvsim.

Every node owns one inbound channel addressed by its port. The dispatch loop
waits on all channels at once and drains whichever are ready. Two
implementations are provided: in-process FIFO mailboxes, and one UDP socket
per node on a single host multiplexed with selectors.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Optional
import logging
import selectors
import socket

from codec import message_size
from errors import ConfigurationError, TransportFailure
from nodes import AddressPlan


logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


class Transport(ABC):
    """
    Addressable channels for N nodes. Delivery order is not guaranteed.

    Any OSError raised by the underlying substrate is reported as
    TransportFailure.
    """

    # Whether wait_ready can usefully block for traffic produced elsewhere.
    blocking = True

    def __init__(self, plan: AddressPlan) -> None:
        self.plan = plan

    @abstractmethod
    def open(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def send(self, src: int, dst: int, payload: bytes) -> None:
        """Send one message from node src to node dst."""
        raise NotImplementedError

    @abstractmethod
    def wait_ready(self, timeout: Optional[float]) -> List[int]:
        """
        Block until at least one node has a pending message, or timeout.

        Returns the ready node indices in ascending order (empty on timeout).
        """
        raise NotImplementedError

    @abstractmethod
    def receive(self, index: int) -> Optional[bytes]:
        """Dequeue one message for node index, or None if none was pending."""
        raise NotImplementedError

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class InMemoryTransport(Transport):
    """
    FIFO mailbox per node, for single-process runs and tests.

    Only the dispatch loop fills the mailboxes, so wait_ready never blocks:
    an empty result means no message is in flight anywhere.
    """

    blocking = False

    def __init__(self, plan: AddressPlan) -> None:
        super().__init__(plan)
        self._mailboxes: Dict[int, Deque[bytes]] = {}

    def open(self) -> None:
        self._mailboxes = {i: deque() for i in range(self.plan.node_count)}

    def close(self) -> None:
        self._mailboxes = {}

    def send(self, src: int, dst: int, payload: bytes) -> None:
        mailbox = self._mailboxes.get(dst)
        if mailbox is None:
            raise TransportFailure(f"no channel for node {dst} (sent by {src})")
        mailbox.append(bytes(payload))

    def wait_ready(self, timeout: Optional[float]) -> List[int]:
        return [i for i, mailbox in sorted(self._mailboxes.items()) if mailbox]

    def receive(self, index: int) -> Optional[bytes]:
        mailbox = self._mailboxes.get(index)
        if not mailbox:
            return None
        return mailbox.popleft()


class UdpTransport(Transport):
    """
    One UDP socket per node bound to (host, base_port + index).

    Each datagram is read into a fresh buffer one byte larger than a valid
    message, so short or oversized datagrams fail decoding instead of being
    mixed with earlier data.
    """

    def __init__(self, plan: AddressPlan, host: str = DEFAULT_HOST) -> None:
        super().__init__(plan)
        self.host = host
        self._sockets: Dict[int, socket.socket] = {}
        self._selector: Optional[selectors.BaseSelector] = None
        self._bufsize = message_size(plan.node_count) + 1

    def open(self) -> None:
        self._selector = selectors.DefaultSelector()
        try:
            for index in range(self.plan.node_count):
                sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
                self._sockets[index] = sock
                # Allow immediate rerun after the previous run exits.
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, self.plan.address(index)))
                sock.setblocking(False)
                self._selector.register(sock, selectors.EVENT_READ, data=index)
        except OSError as exc:
            self.close()
            raise TransportFailure(f"cannot bind node sockets on {self.host}: {exc}") from exc
        logger.debug(
            "bound %d sockets on %s ports %d-%d",
            self.plan.node_count,
            self.host,
            self.plan.address(0),
            self.plan.address(self.plan.node_count - 1),
        )

    def close(self) -> None:
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        for sock in self._sockets.values():
            sock.close()
        self._sockets = {}

    def send(self, src: int, dst: int, payload: bytes) -> None:
        try:
            self._sockets[src].sendto(payload, (self.host, self.plan.address(dst)))
        except KeyError as exc:
            raise TransportFailure(f"node {src} has no open socket") from exc
        except OSError as exc:
            raise TransportFailure(f"send {src} -> {dst} failed: {exc}") from exc

    def wait_ready(self, timeout: Optional[float]) -> List[int]:
        if self._selector is None:
            raise TransportFailure("transport is not open")
        try:
            events = self._selector.select(timeout)
        except OSError as exc:
            raise TransportFailure(f"select failed: {exc}") from exc
        return sorted(key.data for key, _ in events)

    def receive(self, index: int) -> Optional[bytes]:
        try:
            data, _ = self._sockets[index].recvfrom(self._bufsize)
        except BlockingIOError:
            return None
        except KeyError as exc:
            raise TransportFailure(f"node {index} has no open socket") from exc
        except OSError as exc:
            raise TransportFailure(f"receive on node {index} failed: {exc}") from exc
        return data


def make_transport(kind: str, plan: AddressPlan, host: str = DEFAULT_HOST) -> Transport:
    if kind == "memory":
        return InMemoryTransport(plan)
    if kind == "udp":
        return UdpTransport(plan, host=host)
    raise ConfigurationError(f"unknown transport {kind!r}")
