"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devbox.adapters.mock import MockAdapter
from devbox.adapters.registry import AdapterRegistry
from devbox.core.models.config import BootstrapConfig
from devbox.core.models.host import (
    HostIdentity,
    HostObservation,
    HostProfile,
    PackageFamily,
    ResourceState,
)
from devbox.core.models.result import Result


class FakeIndex:
    """Stand-in for RemoteIndex: fixed HEAD answers and listings."""

    def __init__(self, existing=(), listings=None):
        self.existing = set(existing)
        self.listings = dict(listings or {})
        self.head_calls: list[str] = []
        self.get_calls: list[str] = []

    def exists(self, url: str) -> bool:
        self.head_calls.append(url)
        return url in self.existing

    def fetch(self, url: str) -> Result[str]:
        self.get_calls.append(url)
        if url in self.listings:
            return Result.success(self.listings[url])
        return Result.failure("HTTP Error 404: Not Found")


def listing_html(*entries: str) -> str:
    """Render a minimal Apache-style directory listing."""
    links = "\n".join(f'<a href="{e}">{e}</a>' for e in entries)
    return f'<html><body><a href="../">../</a>\n{links}\n</body></html>'


def make_observation(**states: ResourceState) -> HostObservation:
    """An observation where everything is present unless overridden.

    Keyword names use underscores: ``docker_engine=ResourceState.ABSENT``.
    """
    resources = {
        "base-packages": ResourceState.MATCHING,
        "docker-engine": ResourceState.MATCHING,
        "docker-daemon-config": ResourceState.MATCHING,
        "kernel-driver": ResourceState.MATCHING,
        "rocm-userland": ResourceState.MATCHING,
        "editor": ResourceState.MATCHING,
        "group:render": ResourceState.MATCHING,
        "group:video": ResourceState.MATCHING,
        "group:docker": ResourceState.MATCHING,
    }
    for key, state in states.items():
        name = key.replace("_", "-")
        if name.startswith("group-"):
            name = "group:" + name[len("group-"):]
        resources[name] = state
    return HostObservation(
        resources=resources,
        driver_modules=["amdgpu"],
        device_nodes=["/dev/kfd", "/dev/dri/card0", "/dev/dri/renderD128"],
    )


@pytest.fixture
def fake_index() -> type[FakeIndex]:
    return FakeIndex


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter(adapter_name="shell")


@pytest.fixture
def mock_registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    """Registry that routes every action to the mock."""
    return AdapterRegistry(mock_adapter=mock_adapter)


@pytest.fixture
def apt_profile() -> HostProfile:
    return HostProfile(
        package_family=PackageFamily.APT,
        os_codename="noble",
        distro_id="ubuntu",
        distro_version="24.04",
    )


@pytest.fixture
def dnf_profile() -> HostProfile:
    return HostProfile(
        package_family=PackageFamily.DNF,
        os_codename="",
        distro_id="fedora",
        distro_version="40",
    )


@pytest.fixture
def none_profile() -> HostProfile:
    return HostProfile(package_family=PackageFamily.NONE, distro_id="alpine")


@pytest.fixture
def identity() -> HostIdentity:
    return HostIdentity(uid=1000, gid=1000, user="alice", render_gid=992, video_gid=44)


@pytest.fixture
def config(tmp_path: Path) -> BootstrapConfig:
    """Default configuration rooted in a temporary project directory."""
    return BootstrapConfig(project_dir=tmp_path)
