"""
L3 Detection — System package checking.

Read-only probes for package availability.
Uses subprocess for package manager queries.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from devbox.core.services.host_setup.data.constants import APT_SOURCES_DIR

logger = logging.getLogger(__name__)


def _is_pkg_installed(pkg: str, pkg_manager: str) -> bool:
    """Check if a single system package is installed.

    Uses the appropriate checker for the given package manager:
      apt    → dpkg-query -W -f='${Status}' PKG
      dnf    → rpm -q PKG
      zypper → rpm -q PKG

    Returns:
        True if installed, False if not installed or check failed.
    """
    try:
        if pkg_manager == "apt":
            r = subprocess.run(
                ["dpkg-query", "-W", "-f=${Status}", pkg],
                capture_output=True, text=True, timeout=10,
            )
            return "install ok installed" in r.stdout

        if pkg_manager in ("dnf", "zypper"):
            r = subprocess.run(
                ["rpm", "-q", pkg],
                capture_output=True, timeout=10,
            )
            return r.returncode == 0

    except FileNotFoundError:
        logger.warning(
            "Package checker not found for pm=%s (checking %s)",
            pkg_manager, pkg,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Timeout checking package %s with pm=%s", pkg, pkg_manager)
    except OSError as exc:
        logger.warning("OS error checking package %s with pm=%s: %s", pkg, pkg_manager, exc)

    return False


def check_system_deps(packages: list[str], pkg_manager: str) -> dict[str, list[str]]:
    """Split *packages* into installed and missing.

    Returns:
        {"missing": ["pkg1", ...], "installed": ["pkg2", ...]}
    """
    missing: list[str] = []
    installed: list[str] = []
    for pkg in packages:
        if _is_pkg_installed(pkg, pkg_manager):
            installed.append(pkg)
        else:
            missing.append(pkg)
    return {"missing": missing, "installed": installed}


def snap_installed(name: str) -> bool:
    """Whether a snap named *name* is installed (False without snapd)."""
    try:
        r = subprocess.run(
            ["snap", "list", name],
            capture_output=True, text=True, timeout=15,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        return False
    return r.returncode == 0


def microsoft_apt_sources(sources_dir: str | Path = APT_SOURCES_DIR) -> list[str]:
    """Apt ``.list`` files that reference packages.microsoft.com.

    These must agree on one ``Signed-By`` keyring or apt refuses to
    update at all.
    """
    root = Path(sources_dir)
    found: list[str] = []
    try:
        candidates = sorted(root.glob("*.list"))
    except OSError:
        return found
    for path in candidates:
        try:
            if "packages.microsoft.com" in path.read_text(encoding="utf-8", errors="replace"):
                found.append(str(path))
        except OSError:
            continue
    return found
