"""
Shared pytest fixtures for playground tests.

This module provides:
- A recording launcher that never spawns real processes
- A port allocator that does not touch sockets
- Environment paths rooted in tmp_path
- A readiness probe that answers immediately
"""
import asyncio
import itertools
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from clusterplay.cluster.launcher import Launcher
from clusterplay.cluster.probe import ReadinessProbe
from clusterplay.config.loader import ENV_INSTANCE_DATA_DIR, Environment, PlaygroundConfig
from clusterplay.core.installer import ComponentInstaller
from clusterplay.utils.ports import PortAllocator


class FakeProcess:
    """Stand-in for an asyncio subprocess."""

    _pids = itertools.count(4000)

    def __init__(self, uid: str, argv: List[str], env: Dict[str, str]):
        self.uid = uid
        self.argv = argv
        self.env = env
        self.pid = next(self._pids)
        self.returncode: Optional[int] = None
        self.signals: List[int] = []
        self._exited = asyncio.Event()

    def exit(self, code: int):
        if self.returncode is None:
            self.returncode = code
            self._exited.set()


class RecordingLauncher(Launcher):
    """
    Launcher that records every start.

    Args:
        exit_codes: uid -> status the process exits with right after start
        fail_on: uid whose start raises FileNotFoundError
    """

    def __init__(self, exit_codes: Optional[Dict[str, int]] = None, fail_on: Optional[str] = None):
        self.exit_codes = exit_codes or {}
        self.fail_on = fail_on
        self.processes: List[FakeProcess] = []

    async def start(self, argv, env):
        uid = Path(env[ENV_INSTANCE_DATA_DIR]).name
        if uid == self.fail_on:
            raise FileNotFoundError(f"No such file or directory: '{argv[0]}'")
        process = FakeProcess(uid, argv, env)
        self.processes.append(process)
        if uid in self.exit_codes:
            process.exit(self.exit_codes[uid])
        return process

    async def wait(self, handle):
        await handle._exited.wait()
        return handle.returncode

    def send_signal(self, handle, signum):
        handle.signals.append(signum)
        handle.exit(-signum)

    def is_running(self, handle):
        return handle.returncode is None

    def by_uid(self, uid: str) -> FakeProcess:
        return next(p for p in self.processes if p.uid == uid)


@pytest.fixture
def launcher():
    """Provide a RecordingLauncher."""
    return RecordingLauncher()


@pytest.fixture
def allocator():
    """Provide a PortAllocator that treats every port as bindable."""
    allocator = PortAllocator()
    with patch.object(PortAllocator, "_port_available", return_value=True):
        yield allocator


@pytest.fixture
def environment(tmp_path: Path) -> Environment:
    """Provide profile and data roots under tmp_path."""
    return Environment(
        profile_root=tmp_path / "profile",
        data_root=tmp_path / "data",
    )


@pytest.fixture
def installer():
    """Provide a ComponentInstaller that never installs anything."""
    installer = MagicMock(spec=ComponentInstaller)
    installer.install_if_missing = AsyncMock(return_value=None)
    return installer


@pytest.fixture
def probe():
    """Provide a ReadinessProbe whose endpoints are always up."""
    probe = ReadinessProbe(attempts=3, interval=0, connect=lambda addr, timeout: None)
    probe.has_dashboard = AsyncMock(return_value=False)
    return probe


@pytest.fixture
def config() -> PlaygroundConfig:
    """Provide a one-of-each config."""
    return PlaygroundConfig(version="v4.0.0", host="127.0.0.1", pd=1, tikv=1, tidb=1)


@pytest.fixture
def dsn_path(tmp_path: Path) -> Path:
    return tmp_path / "dsn"


@pytest.fixture
def make_orchestrator(environment, launcher, allocator, installer, probe, dsn_path):
    """Factory for orchestrators wired to the fakes above."""
    from clusterplay.core.orchestrator import ClusterOrchestrator

    def factory(config: PlaygroundConfig, **overrides):
        kwargs = dict(
            environment=environment,
            launcher=launcher,
            allocator=allocator,
            installer=installer,
            probe=probe,
            dsn_path=dsn_path,
        )
        kwargs.update(overrides)
        return ClusterOrchestrator(config, **kwargs)

    return factory
