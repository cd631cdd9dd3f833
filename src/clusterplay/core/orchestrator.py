"""
Playground orchestrator - boots a local cluster and supervises it.

The orchestrator walks one run through a fixed sequence of states:

    INITIALIZING -> INSTALLING -> TOPOLOGY_BUILT -> LAUNCHING -> PROBING
        -> RUNNING -> SHUTTING_DOWN -> TERMINATED

Everything happens on one event loop. The only concurrent pieces are the
node processes themselves and the signal listener task.
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..cluster.instance import InstanceSpec, Role
from ..cluster.launcher import Launcher, ProcessLauncher
from ..cluster.probe import ReadinessProbe
from ..cluster.topology import Topology, build_topology
from ..config.loader import Environment, PlaygroundConfig
from ..utils.exceptions import ConfigError, LaunchError, ProcessExitError
from ..utils.logging import get_logger
from ..utils.ports import PortAllocator
from .installer import ComponentInstaller
from .signals import FORWARDED_SIGNALS, SignalWatcher

DSN_FILE = "dsn"


class ClusterState(str, Enum):
    """Lifecycle of one playground run."""
    INITIALIZING = "initializing"
    INSTALLING = "installing"
    TOPOLOGY_BUILT = "topology_built"
    LAUNCHING = "launching"
    PROBING = "probing"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class ClusterOrchestrator:
    """
    Top-level controller for a playground cluster.

    Collaborators (launcher, allocator, installer, probe) can be injected;
    by default the real implementations are used.
    """

    def __init__(
        self,
        config: PlaygroundConfig,
        environment: Optional[Environment] = None,
        launcher: Optional[Launcher] = None,
        allocator: Optional[PortAllocator] = None,
        installer: Optional[ComponentInstaller] = None,
        probe: Optional[ReadinessProbe] = None,
        dsn_path: Path = Path(DSN_FILE)
    ):
        self.config = config
        self.environment = environment
        self.allocator = allocator or PortAllocator()
        self.installer = installer
        self.process_launcher = ProcessLauncher(launcher, tiup_binary=config.tiup_binary)
        self.probe = probe or ReadinessProbe(
            attempts=config.probe.attempts,
            interval=config.probe.interval_seconds,
            timeout=config.probe.connect_timeout_seconds,
        )
        self.dsn_path = Path(dsn_path)
        self.logger = get_logger(__name__)

        self.state = ClusterState.INITIALIZING
        self.topology: Optional[Topology] = None
        self._watcher: Optional[SignalWatcher] = None

    @property
    def launcher(self) -> Launcher:
        return self.process_launcher.launcher

    def _transition(self, state: ClusterState):
        self.logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    async def run(self):
        """
        Boot the cluster and block until every node exits.

        Raises:
            ConfigError: Bad counts or environment, nothing was started
            ProvisioningError: A component failed to install, nothing was started
            LaunchError: A node failed to start; earlier nodes keep running
            ProcessExitError: A node exited with a non-zero status
        """
        self.initialize()
        await self.install()
        self.build()

        print("Playground Bootstrapping...")
        await self.launch_all()
        await self.check_readiness()

        self.publish()
        self.print_summary()
        self._watcher = SignalWatcher(self.shutdown)
        self._watcher.install()
        try:
            await self.wait_all()
        finally:
            self._watcher.uninstall()

    def initialize(self):
        """Validate counts and the environment before touching anything."""
        self._transition(ClusterState.INITIALIZING)
        cfg = self.config
        if cfg.pd < 1 or cfg.tidb < 1 or cfg.tikv < 1:
            raise ConfigError(
                f"all components count must be great than 0 "
                f"(tidb={cfg.tidb}, tikv={cfg.tikv}, pd={cfg.pd})"
            )
        if self.environment is None:
            self.environment = Environment.from_env()
        if self.installer is None:
            self.installer = ComponentInstaller(
                self.environment.profile_root, tiup_binary=cfg.tiup_binary
            )

    async def install(self):
        self._transition(ClusterState.INSTALLING)
        for role in Role:
            await self.installer.install_if_missing(role.value, self.config.version)

    def _create(self, role: Role, count: int) -> List[InstanceSpec]:
        host = self.config.host
        data_root = self.environment.data_root
        try:
            return [
                InstanceSpec.create(role, i, host, data_root / f"{role.value}-{i}", self.allocator)
                for i in range(count)
            ]
        except OSError as e:
            raise ConfigError(f"cannot allocate a port on {host}: {e}") from e

    def build(self) -> Topology:
        """Create every instance (pd first) and join them to the pd set."""
        pds = self._create(Role.COORDINATOR, self.config.pd)
        kvs = self._create(Role.STORAGE, self.config.tikv)
        dbs = self._create(Role.COMPUTE, self.config.tidb)
        self.topology = build_topology(pds, kvs, dbs)
        self._transition(ClusterState.TOPOLOGY_BUILT)
        return self.topology

    async def launch_all(self):
        """
        Start every instance in construction order.

        A failure aborts the run; nodes started before it are left running.
        """
        self._transition(ClusterState.LAUNCHING)
        started: List[str] = []
        for inst in self.topology.all:
            try:
                await self.process_launcher.launch(inst, self.config.version)
            except LaunchError as e:
                if started:
                    self.logger.error(
                        f"Launch of {e.uid} failed, left running: {', '.join(started)}"
                    )
                raise LaunchError(e.uid, e.reason, started) from e
            started.append(inst.uid)

    async def check_readiness(self):
        self._transition(ClusterState.PROBING)
        for db in self.topology.computes:
            await self.probe.check_db(db.addr)

        pd_addr = self.topology.coordinators[0].addr
        if await self.probe.has_dashboard(pd_addr):
            print(f"To view the dashboard: http://{pd_addr}/dashboard")

    def dsn_lines(self) -> List[str]:
        return [f"mysql://root@{db.addr}" for db in self.topology.computes]

    def publish(self):
        """Write the connection artifact; failure here is not fatal."""
        self._transition(ClusterState.RUNNING)
        try:
            self.dsn_path.write_text("\n".join(self.dsn_lines()))
        except OSError as e:
            self.logger.warning(f"Could not write {self.dsn_path}: {e}")

    def clean_dsn(self):
        try:
            self.dsn_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove {self.dsn_path}: {e}")

    async def shutdown(self, signum: int):
        """
        Remove the artifact and pass SIGTERM on to live nodes.

        Terminal-generated signals (SIGINT, SIGQUIT, SIGHUP) already reach
        every node through the foreground process group and are not sent a
        second time.
        """
        self._transition(ClusterState.SHUTTING_DOWN)
        self.clean_dsn()
        if signum not in FORWARDED_SIGNALS:
            return
        for inst in self.topology.all:
            if inst.started and self.launcher.is_running(inst.process):
                self.logger.debug(f"Forwarding signal {signum} to {inst.uid} (PID {inst.pid})")
                self.launcher.send_signal(inst.process, signum)

    async def wait_all(self):
        """
        Wait for every node in construction order.

        Without a termination signal the first non-zero exit is raised at
        once and the other nodes are left alone. After a signal every node
        is waited for and the shutdown callback finishes before the first
        non-zero exit is raised.

        Raises:
            ProcessExitError: For the first node that exited non-zero
        """
        failure: Optional[ProcessExitError] = None
        for inst in self.topology.all:
            returncode = await self.launcher.wait(inst.process)
            if returncode == 0:
                continue
            if self._watcher is None or not self._watcher.triggered:
                raise ProcessExitError(inst.uid, returncode)
            self.logger.info(f"{inst.uid} exited with status {returncode}")
            if failure is None:
                failure = ProcessExitError(inst.uid, returncode)

        if self._watcher is not None:
            await self._watcher.wait_handled()
        if self.state is not ClusterState.SHUTTING_DOWN:
            self._transition(ClusterState.SHUTTING_DOWN)
        self._transition(ClusterState.TERMINATED)
        if failure is not None:
            raise failure

    def get_status(self) -> Dict[str, Any]:
        instances = self.topology.all if self.topology else []
        return {
            "state": self.state.value,
            "instances": [inst.to_dict() for inst in instances],
            "total": len(instances),
        }

    def print_summary(self):
        """Show every running node to the operator."""
        status = self.get_status()
        print("=" * 60)
        print(f"Playground running: {status['total']} instances")
        print("=" * 60)
        for info in status["instances"]:
            print(f"   {info['uid']:<10} PID {info['pid']:<8} {info['addr']:<22} {info['work_dir']}")
        print("\nPress Ctrl+C to stop the playground\n")
