"""
Turning instance records into running node processes.

ProcessLauncher owns the per-role command lines; the actual process
creation goes through a Launcher so tests can record calls instead of
spawning binaries.
"""
import asyncio
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from .instance import InstanceSpec, Role
from .topology import client_endpoints, initial_cluster
from ..config.loader import ENV_INSTANCE_DATA_DIR
from ..utils.exceptions import InstanceStateError, LaunchError
from ..utils.logging import get_logger


class Launcher(ABC):
    """Capability to run an arbitrary command as a child process."""

    @abstractmethod
    async def start(self, argv: List[str], env: Dict[str, str]) -> Any:
        """Start argv without waiting for it; return a handle with a ``pid``."""
        pass

    @abstractmethod
    async def wait(self, handle: Any) -> int:
        """Block until the process exits and return its exit status."""
        pass

    @abstractmethod
    def send_signal(self, handle: Any, signum: int):
        """Deliver signum to the process if it is still alive."""
        pass

    @abstractmethod
    def is_running(self, handle: Any) -> bool:
        pass


class SubprocessLauncher(Launcher):
    """Launcher backed by asyncio subprocesses sharing our stdout/stderr."""

    async def start(self, argv: List[str], env: Dict[str, str]) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *argv,
            env=env,
            stdout=None,
            stderr=None,
        )

    async def wait(self, handle: asyncio.subprocess.Process) -> int:
        return await handle.wait()

    def send_signal(self, handle: asyncio.subprocess.Process, signum: int):
        if handle.returncode is not None:
            return
        try:
            handle.send_signal(signum)
        except ProcessLookupError:
            pass

    def is_running(self, handle: asyncio.subprocess.Process) -> bool:
        return handle.returncode is None


def component_spec(component: str, version: str = "") -> str:
    """``pd`` or ``pd:v4.0.0``"""
    return f"{component}:{version}" if version else component


class ProcessLauncher:
    """Builds and starts the command line of each instance."""

    def __init__(
        self,
        launcher: Optional[Launcher] = None,
        tiup_binary: str = "tiup",
        environ: Optional[Mapping[str, str]] = None
    ):
        self.launcher = launcher or SubprocessLauncher()
        self.tiup_binary = tiup_binary
        self.environ = environ
        self.logger = get_logger(__name__)

    def build_command(self, inst: InstanceSpec, version: str = "") -> List[str]:
        """Full argv for inst, runner prefix included."""
        args = [
            self.tiup_binary, "run", component_spec(inst.role.value, version), "--",
        ]
        if inst.role is Role.COORDINATOR:
            args += self._pd_args(inst)
        elif inst.role is Role.STORAGE:
            args += self._tikv_args(inst)
        else:
            args += self._tidb_args(inst)
        return args

    def _pd_args(self, inst: InstanceSpec) -> List[str]:
        peer = f"http://{inst.host}:{inst.peer_port}"
        client = f"http://{inst.host}:{inst.client_port}"
        args = [
            f"--name={inst.uid}",
            f"--data-dir={inst.data_dir}",
            f"--peer-urls={peer}",
            f"--advertise-peer-urls={peer}",
            f"--client-urls={client}",
            f"--advertise-client-urls={client}",
            f"--log-file={inst.log_file}",
        ]
        cluster = initial_cluster(inst.endpoints)
        if cluster:
            args.append(f"--initial-cluster={cluster}")
        return args

    def _tikv_args(self, inst: InstanceSpec) -> List[str]:
        args = [
            f"--addr={inst.host}:{inst.port}",
            f"--advertise-addr={inst.host}:{inst.port}",
            f"--status-addr={inst.host}:{inst.status_port}",
            f"--data-dir={inst.data_dir}",
            f"--log-file={inst.log_file}",
        ]
        if inst.endpoints:
            args.append(f"--pd={client_endpoints(inst.endpoints)}")
        return args

    def _tidb_args(self, inst: InstanceSpec) -> List[str]:
        args = [
            "-P", str(inst.port),
            "--store=tikv",
            f"--host={inst.host}",
            f"--status={inst.status_port}",
            f"--log-file={inst.log_file}",
        ]
        if inst.endpoints:
            args.append(f"--path={client_endpoints(inst.endpoints)}")
        return args

    def build_env(self, inst: InstanceSpec) -> Dict[str, str]:
        """Parent environment plus the instance's private directory."""
        env = dict(os.environ if self.environ is None else self.environ)
        env[ENV_INSTANCE_DATA_DIR] = str(inst.work_dir)
        return env

    async def launch(self, inst: InstanceSpec, version: str = "") -> Any:
        """
        Start inst and attach the process handle to it.

        Raises:
            InstanceStateError: If inst was already started
            LaunchError: If the directory or the process cannot be created
        """
        if inst.started:
            raise InstanceStateError(f"{inst.uid} already started")

        try:
            inst.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LaunchError(inst.uid, f"cannot create {inst.work_dir}: {e}") from e

        argv = self.build_command(inst, version)
        self.logger.debug(f"Starting {inst.uid}: {' '.join(argv)}")

        try:
            handle = await self.launcher.start(argv, self.build_env(inst))
        except OSError as e:
            raise LaunchError(inst.uid, str(e)) from e

        inst.attach(handle)
        self.logger.info(f"Started {inst.uid} (PID {inst.pid}) at {inst.addr}")
        return handle
