"""
Custom exceptions for the playground orchestrator.

Every error that aborts a bootstrap derives from PlaygroundError. The
``before_launch`` flag tells the operator whether any node process may
still be running when the error surfaces.
"""
from typing import Optional, Sequence


class PlaygroundError(Exception):
    """Base exception for all playground errors."""

    before_launch = True


class ConfigError(PlaygroundError):
    """Invalid instance counts, missing environment, unreadable config file."""
    pass


class ProvisioningError(PlaygroundError):
    """A component could not be installed."""

    def __init__(self, component: str, version: str = "", reason: str = ""):
        self.component = component
        self.version = version
        self.reason = reason
        spec = f"{component}:{version}" if version else component
        message = f"Failed to install '{spec}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InstanceStateError(PlaygroundError):
    """An instance was joined or started out of order."""
    pass


class TopologyError(PlaygroundError):
    """Instances disagree about the coordinator membership."""
    pass


class LaunchError(PlaygroundError):
    """A node process could not be started."""

    before_launch = False

    def __init__(self, uid: str, reason: str, started: Optional[Sequence[str]] = None):
        self.uid = uid
        self.reason = reason
        self.started = list(started or [])
        message = f"Failed to start {uid}: {reason}"
        if self.started:
            message += f" (still running: {', '.join(self.started)})"
        super().__init__(message)


class ProcessExitError(PlaygroundError):
    """A node process exited with a non-zero status."""

    before_launch = False

    def __init__(self, uid: str, returncode: int):
        self.uid = uid
        self.returncode = returncode
        super().__init__(f"{uid} exited with status {returncode}")
