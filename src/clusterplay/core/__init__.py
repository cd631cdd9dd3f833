"""
Orchestration: installing components, booting the cluster, shutdown.
"""
from .installer import ComponentInstaller
from .orchestrator import ClusterOrchestrator, ClusterState, DSN_FILE
from .signals import FORWARDED_SIGNALS, SignalWatcher, TERMINATION_SIGNALS

__all__ = [
    "ComponentInstaller",
    "ClusterOrchestrator",
    "ClusterState",
    "DSN_FILE",
    "FORWARDED_SIGNALS",
    "SignalWatcher",
    "TERMINATION_SIGNALS",
]
