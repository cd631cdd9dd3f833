"""
Making sure each component version is present in the local profile.
"""
import asyncio
from pathlib import Path
from typing import List

from ..cluster.launcher import component_spec
from ..utils.exceptions import ProvisioningError
from ..utils.logging import get_logger


class ComponentInstaller:
    """
    Looks up installed versions under ``<profile>/components/<name>/`` and
    shells out to ``tiup install`` for anything missing.
    """

    def __init__(self, profile_root: Path, tiup_binary: str = "tiup"):
        self.profile_root = Path(profile_root)
        self.tiup_binary = tiup_binary
        self.logger = get_logger(__name__)

    def installed_versions(self, component: str) -> List[str]:
        comp_dir = self.profile_root / "components" / component
        if not comp_dir.is_dir():
            return []
        return sorted(p.name for p in comp_dir.iterdir() if p.is_dir())

    def needs_install(self, component: str, version: str = "") -> bool:
        """
        An empty version accepts whatever is installed; an explicit one
        must match exactly.
        """
        versions = self.installed_versions(component)
        if not versions:
            return True
        if not version:
            return False
        return version not in versions

    async def install_if_missing(self, component: str, version: str = ""):
        """
        Raises:
            ProvisioningError: If the install command fails or cannot run
        """
        if not self.needs_install(component, version):
            self.logger.debug(f"{component_spec(component, version)} already installed")
            return

        spec = component_spec(component, version)
        self.logger.info(f"Installing {spec}...")
        try:
            process = await asyncio.create_subprocess_exec(
                self.tiup_binary, "install", spec,
                stdout=None,
                stderr=None,
            )
            returncode = await process.wait()
        except OSError as e:
            raise ProvisioningError(component, version, str(e)) from e

        if returncode != 0:
            raise ProvisioningError(
                component, version, f"{self.tiup_binary} install exited with status {returncode}"
            )
