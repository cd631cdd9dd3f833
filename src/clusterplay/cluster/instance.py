"""
Instance records for the three cluster roles.

One InstanceSpec describes one node process: who it is, where it listens,
where it keeps its files and which coordinators it talks to. Identity and
ports are fixed when the record is created; join targets are attached once
before the process starts.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from ..utils.exceptions import InstanceStateError
from ..utils.ports import PortAllocator


class Role(str, Enum):
    """Cluster role, valued by its component name."""
    COORDINATOR = "pd"
    STORAGE = "tikv"
    COMPUTE = "tidb"


# Preferred ports per role: (primary, secondary)
#   pd:   client, peer
#   tikv: service, status
#   tidb: service, status
DEFAULT_PORTS = {
    Role.COORDINATOR: (2379, 2380),
    Role.STORAGE: (20160, 20180),
    Role.COMPUTE: (4000, 10080),
}


@dataclass(eq=False)
class InstanceSpec:
    """A single node of the playground cluster."""
    role: Role
    ordinal: int
    host: str
    work_dir: Path
    port: int
    secondary_port: int
    join_targets: Optional[Tuple["InstanceSpec", ...]] = field(default=None, repr=False)
    process: Optional[Any] = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        role: Role,
        ordinal: int,
        host: str,
        work_dir: Path,
        allocator: PortAllocator
    ) -> "InstanceSpec":
        """Build an instance and reserve its two ports."""
        if ordinal < 0:
            raise ValueError(f"ordinal must be non-negative, got {ordinal}")
        primary, secondary = DEFAULT_PORTS[role]
        return cls(
            role=role,
            ordinal=ordinal,
            host=host,
            work_dir=Path(work_dir),
            port=allocator.get_free_port(host, primary),
            secondary_port=allocator.get_free_port(host, secondary),
        )

    @property
    def uid(self) -> str:
        return f"{self.role.value}-{self.ordinal}"

    # Coordinator naming for the two ports
    @property
    def client_port(self) -> int:
        return self.port

    @property
    def peer_port(self) -> int:
        if self.role is not Role.COORDINATOR:
            raise AttributeError(f"{self.uid} has no peer port")
        return self.secondary_port

    @property
    def status_port(self) -> int:
        if self.role is Role.COORDINATOR:
            raise AttributeError(f"{self.uid} has no status port")
        return self.secondary_port

    @property
    def addr(self) -> str:
        """Client-facing host:port."""
        return f"{self.host}:{self.port}"

    @property
    def data_dir(self) -> Path:
        return self.work_dir / "data"

    @property
    def log_file(self) -> Path:
        return self.work_dir / f"{self.role.value}.log"

    @property
    def started(self) -> bool:
        return self.process is not None

    @property
    def pid(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.pid

    @property
    def endpoints(self) -> Tuple["InstanceSpec", ...]:
        return self.join_targets or ()

    def join(self, targets: Sequence["InstanceSpec"]) -> "InstanceSpec":
        """
        Attach the coordinators this instance must connect to.

        Raises:
            InstanceStateError: If already joined or already started
        """
        if self.started:
            raise InstanceStateError(f"{self.uid} already started, cannot join")
        if self.join_targets is not None:
            raise InstanceStateError(f"{self.uid} already joined")
        for target in targets:
            if target.role is not Role.COORDINATOR:
                raise InstanceStateError(
                    f"{self.uid} can only join pd instances, got {target.uid}"
                )
        self.join_targets = tuple(targets)
        return self

    def attach(self, process: Any):
        """Record the handle of the started process."""
        if self.started:
            raise InstanceStateError(f"{self.uid} already started")
        self.process = process

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "role": self.role.value,
            "addr": self.addr,
            "pid": self.pid,
            "work_dir": str(self.work_dir),
        }
