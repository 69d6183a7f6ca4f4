"""
L0 Data — Fixed identifiers for the ROCm host bootstrap.

Tunable values (versions, URLs, shm size) live in ``BootstrapConfig``;
this module holds the facts that do not change per run.
"""

from __future__ import annotations

# ── Resource names ──────────────────────────────────────────────

RES_BASE_PACKAGES = "base-packages"
RES_DOCKER = "docker-engine"
RES_DOCKER_CONFIG = "docker-daemon-config"
RES_DRIVER = "kernel-driver"
RES_ROCM = "rocm-userland"
RES_EDITOR = "editor"
GROUP_PREFIX = "group:"

# ── Host paths ──────────────────────────────────────────────────

PROC_MODULES = "/proc/modules"
OS_RELEASE = "/etc/os-release"
KFD_NODE = "/dev/kfd"
DRI_DIR = "/dev/dri"
DRI_CARD0 = "/dev/dri/card0"
ROCMINFO = "/opt/rocm/bin/rocminfo"
DOCKER_DAEMON_JSON = "/etc/docker/daemon.json"
APT_KEYRINGS = "/etc/apt/keyrings"
APT_SOURCES_DIR = "/etc/apt/sources.list.d"
APT_PREFERENCES_DIR = "/etc/apt/preferences.d"

# ── Package manager binaries, in detection priority ─────────────

PACKAGE_MANAGER_BINARIES: tuple[tuple[str, str], ...] = (
    ("apt", "apt-get"),
    ("dnf", "dnf"),
    ("zypper", "zypper"),
)

# ── Base package suite per family ───────────────────────────────

BASE_PACKAGES: dict[str, list[str]] = {
    "apt": [
        "curl", "wget", "gnupg", "ca-certificates", "lsb-release",
        "jq", "git", "build-essential",
    ],
    "dnf": ["curl", "wget", "gnupg2", "ca-certificates", "jq", "git", "make", "gcc", "gcc-c++"],
    "zypper": ["curl", "wget", "gpg2", "ca-certificates", "jq", "git", "gcc", "gcc-c++", "make"],
}

# ── Docker ──────────────────────────────────────────────────────

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_APT_REPO = "https://download.docker.com/linux/ubuntu"
DOCKER_DNF_REPO = "https://download.docker.com/linux/centos/docker-ce.repo"
DOCKER_CE_PACKAGES = [
    "docker-ce", "docker-ce-cli", "containerd.io",
    "docker-buildx-plugin", "docker-compose-plugin",
]
DOCKER_DISTRO_PACKAGES: dict[str, list[str]] = {
    "apt": ["docker.io"],
    "dnf": ["moby-engine"],
    "zypper": ["docker", "docker-compose"],
}

# ── Editor (VS Code, Microsoft repo) ────────────────────────────

MICROSOFT_KEY_URL = "https://packages.microsoft.com/keys/microsoft.asc"
MICROSOFT_KEYRING = "/etc/apt/keyrings/microsoft.gpg"
VSCODE_APT_REPO = "https://packages.microsoft.com/repos/code"
VSCODE_RPM_REPO = "https://packages.microsoft.com/yumrepos/vscode"
VSCODE_CONFLICTING_LISTS = ["vscode.list", "microsoft-prod.list"]

# ── ROCm ────────────────────────────────────────────────────────

ROCM_KEYRING = "/etc/apt/keyrings/rocm.gpg"
ROCM_PIN_PRIORITY_FILE = "rocm-pin-600"
ROCM_PIN_PRIORITY = "Package: *\nPin: release o=repo.radeon.com\nPin-Priority: 600\n"
DRIVER_USECASE = "hip,opencl"
ROCM_USECASE = "rocm,hip,opencl"
INSTALLER_RPM_SUBDIRS = ("rhel/9", "rhel/8")

# ── Login notice ────────────────────────────────────────────────

RELOGIN_NOTICE = (
    "Group membership changed. Open a new login shell (or reboot) "
    "before using docker or the GPU devices."
)
