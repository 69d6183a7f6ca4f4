"""
L3 Detection — Distribution and package-manager probe.

Read-only: parses /etc/os-release and looks for package manager
binaries on PATH. Produces the immutable HostProfile for the run.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable

from devbox.core.models.host import HostProfile, PackageFamily
from devbox.core.services.host_setup.data.constants import (
    OS_RELEASE,
    PACKAGE_MANAGER_BINARIES,
)

logger = logging.getLogger(__name__)


def read_os_release(path: str | Path = OS_RELEASE) -> dict[str, str]:
    """Parse an os-release file into a dict.

    Quotes around values are stripped; comments and blank lines are
    ignored. A missing or unreadable file yields an empty dict.
    """
    data: dict[str, str] = {}
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (FileNotFoundError, OSError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return data

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip('"').strip("'")
    return data


def detect_package_family(
    which: Callable[[str], str | None] = shutil.which,
) -> PackageFamily:
    """Return the first package manager found: apt → dnf → zypper → none."""
    for family, binary in PACKAGE_MANAGER_BINARIES:
        if which(binary):
            return PackageFamily(family)
    return PackageFamily.NONE


def probe(
    os_release_path: str | Path = OS_RELEASE,
    which: Callable[[str], str | None] = shutil.which,
) -> HostProfile:
    """Probe the host's distribution identity.

    Returns:
        HostProfile with the package family, codename and distro ID.
        The codename prefers ``UBUNTU_CODENAME`` (set on Ubuntu
        derivatives such as Mint) over ``VERSION_CODENAME``.
    """
    info = read_os_release(os_release_path)
    family = detect_package_family(which)

    profile = HostProfile(
        package_family=family,
        os_codename=info.get("UBUNTU_CODENAME") or info.get("VERSION_CODENAME", ""),
        distro_id=info.get("ID", ""),
        distro_version=info.get("VERSION_ID", ""),
    )

    if family is PackageFamily.NONE:
        logger.warning(
            "No supported package manager (apt-get, dnf, zypper) found; "
            "host changes are disabled for this run."
        )
    else:
        logger.info(
            "Host: %s %s (%s), package manager: %s",
            profile.distro_id or "unknown",
            profile.distro_version,
            profile.os_codename or "no codename",
            family.value,
        )
    return profile


def command_available(name: str) -> bool:
    """Whether *name* resolves on PATH."""
    return shutil.which(name) is not None
