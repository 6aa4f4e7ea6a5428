from pathlib import Path

import pytest

from errors import ConfigurationError
from experiment_runner import (
    DEFAULT_CONFIG,
    format_table,
    load_config,
    main,
    verify_against_dijkstra,
)
from nodes import AddressPlan
from routing import initial_network
from simulation import run_simulation
from snapshots import SnapshotWriter
from topology_builder import build_topology


def _write_config(tmp_path: Path, body: str) -> Path:
    (tmp_path / "links.csv").write_text("A,10000,10001,5\nB,10001,10000,5\n")
    cfg = tmp_path / "sim.yml"
    cfg.write_text(body)
    return cfg


def test_load_config_resolves_paths_and_defaults(tmp_path: Path):
    """Relative paths resolve against the config file; missing keys take defaults."""
    cfg = _write_config(
        tmp_path,
        """
node_count: 2
topology: links.csv
transport: memory
snapshot_dir: out
""",
    )

    config = load_config(cfg)

    assert config.topology == tmp_path / "links.csv"
    assert config.snapshot_dir == tmp_path / "out"
    assert config.node_count == 2
    assert config.base_port == 10000
    assert config.transport == "memory"
    assert config.idle_timeout == 1.0
    assert config.max_messages is None
    assert config.settings(root=1).root == 1


def test_shipped_config_loads():
    """The bundled config points at the bundled 6-node topology."""
    config = load_config(DEFAULT_CONFIG)

    assert config.node_count == 6
    assert config.transport == "udp"
    assert config.topology.exists()


@pytest.mark.parametrize(
    "body",
    [
        "node_count: 2\n",                                      # no topology
        "topology: links.csv\ntransport: carrier-pigeon\n",
        "topology: links.csv\nnode_count: lots\n",
        "topology: links.csv\nnode_count: 40\n",
        "topology: links.csv\nidle_timeout: -1\n",
        "topology: links.csv\npoll_interval: 0\n",
        "- just\n- a list\n",
        "topology: [unclosed\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, body: str):
    """Bad values and bad YAML raise ConfigurationError."""
    cfg = _write_config(tmp_path, body)
    with pytest.raises(ConfigurationError):
        load_config(cfg)


def test_missing_config_is_rejected(tmp_path: Path):
    """A config path that does not exist is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "nope.yml")


def test_main_runs_sample_in_memory(capsys):
    """The CLI runs the sample network, prints progress and verifies it."""
    status = main(["A", "--transport", "memory", "--verify"])

    out = capsys.readouterr().out
    assert status == 0
    assert "[run] node A seeding a 6-node network over memory" in out
    assert "[run] quiescent" in out
    assert "[run] all costs match Dijkstra" in out
    assert "routing table of A (port 10000)" in out


def test_main_accepts_index_and_writes_snapshots(tmp_path: Path, capsys):
    """NODE may be an index; --snapshot-dir gets one file per node."""
    status = main(["2", "--transport", "memory", "--snapshot-dir", str(tmp_path)])

    assert status == 0
    assert "routing table of C" in capsys.readouterr().out
    assert sorted(p.name for p in tmp_path.iterdir()) == [f"routing-output{c}.txt" for c in "ABCDEF"]


def test_main_rejects_unknown_node(capsys):
    """A NODE outside the network exits with status 2."""
    assert main(["Q", "--transport", "memory"]) == 2
    assert "configuration error" in capsys.readouterr().err


def test_main_requires_node_argument():
    """NODE is a required positional argument."""
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2


def test_main_rejects_missing_config(tmp_path: Path):
    """--config pointing nowhere exits with status 2."""
    assert main(["A", "--config", str(tmp_path / "missing.yml")]) == 2


def test_verify_reports_disagreements():
    """Unconverged tables are reported per pair; converged ones match Dijkstra."""
    plan = AddressPlan(3)
    topo = build_topology(plan, [(0, 1, 1), (1, 2, 1)])

    # Before any exchange A does not know C.
    mismatches = verify_against_dijkstra(topo, initial_network(topo))

    assert "A -> C: dv=None dijkstra=2" in mismatches
    assert "C -> A: dv=None dijkstra=2" in mismatches
    assert verify_against_dijkstra(topo, run_simulation(topo).network) == []


def test_format_table_marks_unknown_rows():
    """Unreachable rows are printed as inf."""
    plan = AddressPlan(2)
    topo = build_topology(plan, [])
    text = format_table(plan, initial_network(topo)[0])

    assert "routing table of A (port 10000)" in text
    assert "inf" in text


def test_main_reports_unwritable_snapshot_dir(tmp_path: Path, capsys):
    """A snapshot dir that cannot be created is a configuration error, not a traceback."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    status = main(["A", "--transport", "memory", "--snapshot-dir", str(blocker / "out")])

    assert status == 2
    assert "[run] configuration error" in capsys.readouterr().err


def test_snapshot_writer_wraps_os_errors(tmp_path: Path):
    """Both directory creation and file writes surface as ConfigurationError."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    plan = AddressPlan(2)
    network = initial_network(build_topology(plan, []))

    with pytest.raises(ConfigurationError):
        SnapshotWriter(blocker / "out", plan).initialize(network)
    with pytest.raises(ConfigurationError):
        SnapshotWriter(blocker, plan).append(network[0])
