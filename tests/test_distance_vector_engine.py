import random

from distance_vector_engine import SimpleDistanceVectorEngine
from nodes import AddressPlan
from routing import INFINITY, Route, RoutingTable, initial_table
from topology_builder import build_topology


plan = AddressPlan(3)
dv = SimpleDistanceVectorEngine(plan)


def _line():
    """A -(1)- B -(1)- C, no direct A-C link."""
    return build_topology(plan, [(0, 1, 1), (1, 2, 1)])


def test_relax_installs_route_through_sender():
    """A learns C from B at link cost + advertised cost, sending through B."""
    topo = _line()
    a = initial_table(topo, 0)
    b = initial_table(topo, 1)

    updated, changed = dv.relax(a, b)

    assert changed
    assert updated.cost(2) == 2
    route = updated.routes[2]
    assert route.outgoing_port == plan.address(1)
    assert route.destination_port == plan.address(2)
    # The label is copied from the sender's row for C.
    assert route.via == b.routes[2].via == "C"
    # Input table is left untouched.
    assert a.cost(2) == INFINITY


def test_relax_skips_unreachable_adverts():
    """Infinity in an advert is never installed."""
    topo = _line()
    a = initial_table(topo, 0)
    b = initial_table(topo, 1)
    b.routes[2] = Route()  # B claims C is unreachable

    updated, changed = dv.relax(a, b)

    assert not changed
    assert updated.cost(2) == INFINITY


def test_relax_never_withdraws_a_route():
    """An unreachable claim does not override an installed finite route."""
    topo = _line()
    a = initial_table(topo, 0)
    a.routes[2] = Route("C", 7, plan.address(1), plan.address(2))
    b = initial_table(topo, 1)
    b.routes[2] = Route()

    updated, changed = dv.relax(a, b)

    assert not changed
    assert updated.routes[2] == Route("C", 7, plan.address(1), plan.address(2))


def test_relax_requires_strict_improvement():
    """Equal-cost alternative does not replace the existing route."""
    topo = build_topology(plan, [(0, 1, 1), (0, 2, 2), (1, 2, 1)])
    a = initial_table(topo, 0)
    b = initial_table(topo, 1)

    updated, changed = dv.relax(a, b)  # via B would also cost 2

    assert not changed
    assert updated.routes[2].outgoing_port == plan.address(2)


def test_relax_replay_is_noop():
    """Relaxing against the same advert twice changes nothing the second time."""
    topo = _line()
    a = initial_table(topo, 0)
    b = initial_table(topo, 1)

    once, changed_once = dv.relax(a, b)
    twice, changed_twice = dv.relax(once, b)

    assert changed_once
    assert not changed_twice
    assert twice == once


def test_relax_from_sender_without_route_is_noop():
    """A has no route to C, so C's advert cannot be priced."""
    topo = _line()
    a = initial_table(topo, 0)
    c = initial_table(topo, 2)

    updated, changed = dv.relax(a, c)

    assert not changed
    assert updated == a


def test_relax_keeps_self_row():
    """The receiver's own row stays at cost 0."""
    topo = _line()
    b = initial_table(topo, 1)
    a = initial_table(topo, 0)
    self_row = b.routes[1]

    updated, _ = dv.relax(b, a)

    assert updated.routes[1] == self_row
    assert updated.cost(1) == 0


def test_costs_never_increase_over_random_adverts():
    """Monotonicity: any sequence of relaxations only lowers costs."""
    rng = random.Random(7)
    big = AddressPlan(5)
    engine = SimpleDistanceVectorEngine(big)
    topo = build_topology(big, [(0, 1, 3), (0, 2, 9), (0, 3, 1)])
    current = initial_table(topo, 0)

    for _ in range(200):
        sender = rng.choice([1, 2, 3])
        routes = []
        for dest in range(big.node_count):
            if dest == sender:
                routes.append(Route(big.label(dest), 0, big.address(dest), big.address(dest)))
            elif rng.random() < 0.3:
                routes.append(Route())
            else:
                routes.append(Route(big.label(dest), rng.randint(0, 20), big.address(sender), big.address(dest)))
        before = current.costs()
        current, _ = engine.relax(current, RoutingTable(sender, routes))
        after = current.costs()
        assert all(new <= old for new, old in zip(after, before))
        assert current.cost(0) == 0
