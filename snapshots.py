"""
Routing-table snapshot files, one per node: routing-output<LABEL>.txt.

Each snapshot is a timestamp line, a header and one CSV row per destination.
Files are rewritten when a run starts and appended to on every table change.
"""

from pathlib import Path
from typing import Iterable
import csv
import time

from errors import ConfigurationError
from nodes import AddressPlan
from routing import RoutingTable, is_reachable


HEADER = "Destination, Via, Cost, Outgoing Port, Destination Port"


class SnapshotWriter:
    def __init__(self, directory: Path, plan: AddressPlan) -> None:
        self.directory = directory
        self.plan = plan

    def path_for(self, index: int) -> Path:
        return self.directory / f"routing-output{self.plan.label(index)}.txt"

    def initialize(self, network: Iterable[RoutingTable]) -> None:
        """Create the directory and start one fresh file per node."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"cannot create snapshot directory {self.directory}: {exc}") from exc
        for table in network:
            self._write(table, mode="w")

    def append(self, table: RoutingTable) -> None:
        self._write(table, mode="a")

    def _write(self, table: RoutingTable, mode: str) -> None:
        path = self.path_for(table.owner)
        try:
            with path.open(mode, newline="") as f:
                f.write(f"Timestamp: {int(time.time())}\n{HEADER}\n")
                writer = csv.writer(f, lineterminator="\n")
                for dest, route in enumerate(table.routes):
                    writer.writerow(
                        [
                            self.plan.label(dest),
                            route.via or "",
                            route.cost if is_reachable(route.cost) else "inf",
                            route.outgoing_port or "",
                            route.destination_port or "",
                        ]
                    )
        except OSError as exc:
            raise ConfigurationError(f"cannot write snapshot {path}: {exc}") from exc
