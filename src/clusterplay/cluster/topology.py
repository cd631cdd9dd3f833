"""
Topology helpers: how coordinators advertise themselves and how the other
roles find them.

All strings are computed on demand from the instance records so they always
reflect the final port assignment.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .instance import InstanceSpec, Role
from ..utils.exceptions import TopologyError


def peer_url(inst: InstanceSpec) -> str:
    """``<uid>=http://<host>:<peer_port>``"""
    return f"{inst.uid}=http://{inst.host}:{inst.peer_port}"


def initial_cluster(coordinators: Sequence[InstanceSpec]) -> str:
    """
    Comma-joined peer URLs of every coordinator, self included.

    A lone coordinator bootstraps standalone, so the result is empty.
    """
    if len(coordinators) <= 1:
        return ""
    return ",".join(peer_url(pd) for pd in coordinators)


def client_endpoints(coordinators: Sequence[InstanceSpec]) -> str:
    """Comma-joined ``host:client_port`` of the coordinators."""
    return ",".join(f"{pd.host}:{pd.client_port}" for pd in coordinators)


@dataclass(frozen=True)
class Topology:
    """All instances of one run, in construction order."""
    coordinators: Tuple[InstanceSpec, ...]
    storages: Tuple[InstanceSpec, ...]
    computes: Tuple[InstanceSpec, ...]

    @property
    def all(self) -> List[InstanceSpec]:
        return [*self.coordinators, *self.storages, *self.computes]

    def validate(self):
        """
        Check that every instance joins exactly the coordinator set.

        Raises:
            TopologyError: If membership differs anywhere
        """
        if not self.coordinators:
            raise TopologyError("topology has no pd instance")
        expected = [id(pd) for pd in self.coordinators]
        for inst in self.all:
            if inst.join_targets is None:
                raise TopologyError(f"{inst.uid} has not joined the cluster")
            if [id(t) for t in inst.join_targets] != expected:
                raise TopologyError(
                    f"{inst.uid} joins a different pd set than the rest of the cluster"
                )
        for role, group in (
            (Role.COORDINATOR, self.coordinators),
            (Role.STORAGE, self.storages),
            (Role.COMPUTE, self.computes),
        ):
            for inst in group:
                if inst.role is not role:
                    raise TopologyError(f"{inst.uid} listed as {role.value}")


def build_topology(
    coordinators: Sequence[InstanceSpec],
    storages: Sequence[InstanceSpec],
    computes: Sequence[InstanceSpec]
) -> Topology:
    """
    Join every instance to the full coordinator set and return the result.

    Coordinators join each other (including themselves).
    """
    pds = tuple(coordinators)
    for inst in (*pds, *storages, *computes):
        inst.join(pds)
    topology = Topology(pds, tuple(storages), tuple(computes))
    topology.validate()
    return topology
