"""
Cluster Building Blocks

Instance records, topology strings, process launching and readiness checks.
"""
from .instance import InstanceSpec, Role
from .launcher import Launcher, ProcessLauncher, SubprocessLauncher
from .probe import ReadinessProbe
from .topology import Topology, build_topology, client_endpoints, initial_cluster, peer_url

__all__ = [
    "InstanceSpec",
    "Role",
    "Launcher",
    "ProcessLauncher",
    "SubprocessLauncher",
    "ReadinessProbe",
    "Topology",
    "build_topology",
    "client_endpoints",
    "initial_cluster",
    "peer_url",
]
