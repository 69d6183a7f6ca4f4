"""
L3 Detection — GPU kernel driver, device nodes and ROCm userland.

Read-only system probes: /proc/modules, /dev/kfd, /dev/dri, rocminfo.
Driver presence and device-node presence are reported independently;
either can be true without the other.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from devbox.core.models.host import ResourceState
from devbox.core.services.host_setup.data.constants import (
    DRI_DIR,
    KFD_NODE,
    PROC_MODULES,
    ROCMINFO,
)

logger = logging.getLogger(__name__)


def loaded_driver_modules(
    patterns: list[str],
    proc_modules: str | Path = PROC_MODULES,
) -> list[str]:
    """List loaded kernel modules whose name contains any of *patterns*.

    Substring matching mirrors ``lsmod | grep -E 'amdgpu|kfd|amdkfd'``.
    """
    try:
        with open(proc_modules, encoding="utf-8") as f:
            loaded = [line.split()[0] for line in f if line.strip()]
    except (FileNotFoundError, OSError):
        logger.debug("Cannot read %s; assuming no modules loaded", proc_modules)
        return []
    return sorted(m for m in loaded if any(p in m for p in patterns))


def gpu_device_nodes(
    kfd: str | Path = KFD_NODE,
    dri_dir: str | Path = DRI_DIR,
) -> list[str]:
    """Return the GPU device nodes present on the host."""
    nodes: list[str] = []
    if os.path.exists(kfd):
        nodes.append(str(kfd))
    dri = Path(dri_dir)
    if dri.is_dir():
        try:
            nodes.extend(sorted(str(p) for p in dri.iterdir()))
        except OSError:
            pass
    return nodes


def rocm_userland_state(rocminfo: str | Path = ROCMINFO) -> ResourceState:
    """Observe the host ROCm userland.

    - rocminfo missing                → ABSENT
    - rocminfo present and runs       → MATCHING
    - rocminfo present but fails      → MISMATCHED (broken install)
    """
    path = Path(rocminfo)
    if not (path.is_file() and os.access(path, os.X_OK)):
        return ResourceState.ABSENT
    try:
        r = subprocess.run(
            [str(path)],
            capture_output=True, text=True, timeout=30,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("Found %s but it failed to run: %s", path, e)
        return ResourceState.MISMATCHED
    if r.returncode != 0:
        logger.warning("Found %s but it exited with %d", path, r.returncode)
        return ResourceState.MISMATCHED
    return ResourceState.MATCHING
