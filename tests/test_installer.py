"""
Tests for ComponentInstaller.
"""
from unittest.mock import AsyncMock, patch

import pytest

from clusterplay.core.installer import ComponentInstaller
from clusterplay.utils.exceptions import ProvisioningError


@pytest.fixture
def profile(tmp_path):
    root = tmp_path / "profile"
    (root / "components" / "pd" / "v4.0.0").mkdir(parents=True)
    (root / "components" / "pd" / "v3.1.0").mkdir(parents=True)
    return root


def test_installed_versions(profile):
    installer = ComponentInstaller(profile)

    assert installer.installed_versions("pd") == ["v3.1.0", "v4.0.0"]
    assert installer.installed_versions("tikv") == []


def test_needs_install_rules(profile):
    installer = ComponentInstaller(profile)

    assert installer.needs_install("pd") is False
    assert installer.needs_install("pd", "v4.0.0") is False
    assert installer.needs_install("pd", "v4.0.1") is True
    assert installer.needs_install("tidb") is True


def _process(returncode):
    process = AsyncMock()
    process.wait = AsyncMock(return_value=returncode)
    return process


@pytest.mark.asyncio
async def test_present_version_is_not_reinstalled(profile):
    installer = ComponentInstaller(profile)

    with patch("asyncio.create_subprocess_exec") as mock_exec:
        await installer.install_if_missing("pd", "v4.0.0")

    mock_exec.assert_not_called()


@pytest.mark.asyncio
async def test_missing_version_is_installed(profile):
    installer = ComponentInstaller(profile, tiup_binary="tiup")

    with patch("asyncio.create_subprocess_exec", return_value=_process(0)) as mock_exec:
        await installer.install_if_missing("pd", "v4.0.1")

    assert mock_exec.call_args[0] == ("tiup", "install", "pd:v4.0.1")


@pytest.mark.asyncio
async def test_missing_component_without_version(profile):
    installer = ComponentInstaller(profile)

    with patch("asyncio.create_subprocess_exec", return_value=_process(0)) as mock_exec:
        await installer.install_if_missing("tikv")

    assert mock_exec.call_args[0] == ("tiup", "install", "tikv")


@pytest.mark.asyncio
async def test_install_failure(profile):
    installer = ComponentInstaller(profile)

    with patch("asyncio.create_subprocess_exec", return_value=_process(1)):
        with pytest.raises(ProvisioningError, match="tidb:v9.9.9") as exc_info:
            await installer.install_if_missing("tidb", "v9.9.9")

    assert exc_info.value.before_launch is True


@pytest.mark.asyncio
async def test_missing_runner_binary(profile):
    installer = ComponentInstaller(profile, tiup_binary="no-such-tiup")

    with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("no-such-tiup")):
        with pytest.raises(ProvisioningError, match="no-such-tiup"):
            await installer.install_if_missing("tidb")
