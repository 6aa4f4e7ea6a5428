import random
import socket

import pytest


def _free_port_block(count: int) -> int:
    rng = random.Random()
    for _ in range(50):
        base = rng.randint(20000, 60000)
        probes = []
        try:
            for offset in range(count):
                sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
                probes.append(sock)
                sock.bind(("127.0.0.1", base + offset))
        except OSError:
            continue
        finally:
            for sock in probes:
                sock.close()
        return base
    pytest.skip("no free block of UDP ports on 127.0.0.1")


@pytest.fixture
def free_base_port():
    """Returns a callable giving a base port with `count` free UDP ports above it."""
    return _free_port_block
