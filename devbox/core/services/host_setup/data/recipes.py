"""
L0 Data — Install recipes per resource and package family.

Each builder returns the ordered fallback chain of InstallPaths for one
resource. Nothing here runs anything; the engine executes the commands
through the shell adapter.

Commands marked ``check=False`` are best-effort: their failure is
logged and the path continues (cleanup, sanitizing, service restarts).
"""

from __future__ import annotations

import platform
import posixpath

from devbox.core.models.plan import Command, InstallPath
from devbox.core.services.host_setup.data.constants import (
    APT_KEYRINGS,
    APT_PREFERENCES_DIR,
    APT_SOURCES_DIR,
    DOCKER_APT_REPO,
    DOCKER_CE_PACKAGES,
    DOCKER_DAEMON_JSON,
    DOCKER_DISTRO_PACKAGES,
    DOCKER_DNF_REPO,
    DOCKER_GPG_URL,
    DRIVER_USECASE,
    MICROSOFT_KEY_URL,
    MICROSOFT_KEYRING,
    ROCM_KEYRING,
    ROCM_PIN_PRIORITY,
    ROCM_PIN_PRIORITY_FILE,
    ROCM_USECASE,
    VSCODE_APT_REPO,
    VSCODE_CONFLICTING_LISTS,
    VSCODE_RPM_REPO,
)

_ARCH_MAP = {"x86_64": "amd64", "aarch64": "arm64", "armv7l": "armhf"}

_DOCKER_KEYRING = f"{APT_KEYRINGS}/docker.gpg"
_DOCKER_LIST = f"{APT_SOURCES_DIR}/docker.list"
_VSCODE_LIST = f"{APT_SOURCES_DIR}/vscode.list"


def deb_arch() -> str:
    """Debian architecture name of this machine."""
    machine = platform.machine()
    return _ARCH_MAP.get(machine, machine or "amd64")


# ── Command helpers ─────────────────────────────────────────────


def _sudo(*argv: str, check: bool = True, input: str | None = None) -> Command:
    return Command(argv=list(argv), sudo=True, check=check, input=input)


def _write_root_file(path: str, content: str) -> Command:
    return _sudo("tee", path, input=content)


def _apt_keyring(url: str, keyring: str) -> list[Command]:
    return [
        _sudo("install", "-m", "0755", "-d", APT_KEYRINGS),
        _sudo("sh", "-c", f"curl -fsSL {url} | gpg --batch --yes --dearmor -o {keyring}"),
        _sudo("chmod", "a+r", keyring),
    ]


def _remove(*paths: str) -> Command:
    return _sudo("rm", "-f", *paths, check=False)


def sanitize_microsoft_sources(files: list[str]) -> list[Command]:
    """Point every Microsoft apt source at the one managed keyring.

    Conflicting ``Signed-By`` values for packages.microsoft.com make
    ``apt-get update`` fail for every repository, not just Microsoft's.
    """
    if not files:
        return []
    return [
        _sudo(
            "sed", "-i", f"s@Signed-By=[^ ]*@Signed-By={MICROSOFT_KEYRING}@g", *files,
            check=False,
        ),
    ]


def package_install(family: str, packages: list[str], reinstall: bool = False) -> list[Command]:
    """Install (or reinstall) *packages* with the native package manager."""
    if family == "apt":
        cmd = ["apt-get", "install", "-y", "--no-install-recommends"]
        if reinstall:
            cmd.append("--reinstall")
        return [_sudo("apt-get", "update", "-y"), _sudo(*cmd, *packages)]
    if family == "dnf":
        verb = "reinstall" if reinstall else "install"
        return [_sudo("dnf", "-y", verb, *packages)]
    if family == "zypper":
        cmd = ["zypper", "--non-interactive", "install"]
        if reinstall:
            cmd.append("--force")
        return [_sudo("zypper", "--non-interactive", "refresh", check=False), _sudo(*cmd, *packages)]
    return []


# ── Base packages ───────────────────────────────────────────────


def base_package_paths(
    family: str,
    missing: list[str],
    present: list[str] | None = None,
    microsoft_sources: list[str] | None = None,
) -> list[InstallPath]:
    """Install *missing* suite packages, then reinstall *present* ones.

    A partially installed suite only installs what is missing; the
    present packages are reinstalled only when asked for.
    """
    commands = sanitize_microsoft_sources(microsoft_sources or []) if family == "apt" else []
    if missing:
        commands += package_install(family, missing)
    if present:
        commands += package_install(family, present, reinstall=True)
    if not missing and not present:
        return []
    return [InstallPath(name=f"{family} base packages", commands=commands)] if commands else []


# ── Docker engine ───────────────────────────────────────────────


def docker_paths(
    family: str,
    codename: str,
    reinstall: bool = False,
    microsoft_sources: list[str] | None = None,
) -> list[InstallPath]:
    """Vendor repository first, distribution package second."""
    distro = DOCKER_DISTRO_PACKAGES.get(family, [])
    enable = _sudo("systemctl", "enable", "--now", "docker", check=False)

    if family == "apt":
        repo_line = (
            f"deb [arch={deb_arch()} signed-by={_DOCKER_KEYRING}] "
            f"{DOCKER_APT_REPO} {codename or 'stable'} stable\n"
        )
        vendor = InstallPath(
            name="docker-ce (download.docker.com)",
            commands=[
                *sanitize_microsoft_sources(microsoft_sources or []),
                *_apt_keyring(DOCKER_GPG_URL, _DOCKER_KEYRING),
                _write_root_file(_DOCKER_LIST, repo_line),
                *package_install("apt", DOCKER_CE_PACKAGES, reinstall),
                enable,
            ],
        )
        fallback = InstallPath(
            name=f"{' '.join(distro)} (distribution)",
            commands=[_remove(_DOCKER_LIST), *package_install("apt", distro, reinstall), enable],
        )
        return [vendor, fallback]

    if family == "dnf":
        vendor = InstallPath(
            name="docker-ce (download.docker.com)",
            commands=[
                _sudo("dnf", "-y", "install", "dnf-plugins-core"),
                _sudo("dnf", "config-manager", "--add-repo", DOCKER_DNF_REPO),
                *package_install("dnf", DOCKER_CE_PACKAGES, reinstall),
                enable,
            ],
        )
        fallback = InstallPath(
            name=f"{' '.join(distro)} (distribution)",
            commands=[*package_install("dnf", distro, reinstall), enable],
        )
        return [vendor, fallback]

    if family == "zypper":
        return [
            InstallPath(
                name=f"{' '.join(distro)} (distribution)",
                commands=[*package_install("zypper", distro, reinstall), enable],
            ),
        ]
    return []


def docker_config_paths() -> list[InstallPath]:
    """Create an empty daemon.json and restart the daemon to pick it up."""
    return [
        InstallPath(
            name="empty daemon.json",
            commands=[
                _sudo("install", "-m", "0755", "-d", posixpath.dirname(DOCKER_DAEMON_JSON)),
                _write_root_file(DOCKER_DAEMON_JSON, "{}\n"),
                _sudo("systemctl", "restart", "docker", check=False),
            ],
        ),
    ]


# ── AMDGPU installer (driver + ROCm fallback) ───────────────────


def _installer_path(family: str, url: str, usecase: str, dkms: bool = True) -> InstallPath:
    filename = url.rsplit("/", 1)[-1]
    local = f"/tmp/{filename}"
    commands = [Command(argv=["curl", "-fsSL", "-o", local, url])]
    if family == "apt":
        commands += [
            _sudo("dpkg", "-i", local, check=False),
            _sudo("apt-get", "update", "-y"),
        ]
    elif family == "dnf":
        commands.append(_sudo("dnf", "-y", "install", local))
    elif family == "zypper":
        commands.append(_sudo("zypper", "--non-interactive", "install", "--allow-unsigned-rpm", local))

    installer = ["amdgpu-install", "-y", f"--usecase={usecase}", "--accept-eula"]
    if not dkms:
        installer.append("--no-dkms")
    commands.append(_sudo(*installer))

    label = filename if dkms else f"{filename} --no-dkms"
    return InstallPath(name=f"amdgpu-install {label} ({usecase})", commands=commands)


def _installer_chain(family: str, urls: list[str], usecase: str) -> list[InstallPath]:
    paths = [_installer_path(family, url, usecase) for url in urls]
    if urls:
        paths.append(_installer_path(family, urls[0], usecase, dkms=False))
    return paths


def driver_paths(family: str, installer_urls: list[str]) -> list[InstallPath]:
    """Kernel driver via ``amdgpu-install --usecase=hip,opencl``."""
    return _installer_chain(family, installer_urls, DRIVER_USECASE)


# ── ROCm userland ───────────────────────────────────────────────


def rocm_list_file(series: str) -> str:
    name = "rocm.list" if series == "latest" else f"rocm-{series}.list"
    return f"{APT_SOURCES_DIR}/{name}"


def rocm_paths(
    family: str,
    codename: str,
    apt_index_url: str,
    gpg_key_url: str,
    apt_series: list[str],
    installer_urls: list[str],
    reinstall: bool = False,
) -> list[InstallPath]:
    """ROCm userland: apt repository per confirmed series, then the installer.

    Each later apt path removes the source lists of the paths before it,
    so a half-configured series cannot break the next ``apt-get update``.
    """
    paths: list[InstallPath] = []
    tried_lists: list[str] = []

    if family == "apt":
        base = apt_index_url.rstrip("/")
        for series in apt_series:
            list_file = rocm_list_file(series)
            repo_line = (
                f"deb [arch=amd64 signed-by={ROCM_KEYRING}] {base}/{series} {codename} main\n"
            )
            commands = [_remove(*tried_lists)] if tried_lists else []
            commands += [
                *_apt_keyring(gpg_key_url, ROCM_KEYRING),
                _write_root_file(list_file, repo_line),
                _write_root_file(f"{APT_PREFERENCES_DIR}/{ROCM_PIN_PRIORITY_FILE}", ROCM_PIN_PRIORITY),
                *package_install("apt", ["rocm"], reinstall),
            ]
            paths.append(InstallPath(name=f"ROCm apt repository {series}", commands=commands))
            tried_lists.append(list_file)

    installer = _installer_chain(family, installer_urls, ROCM_USECASE)
    if tried_lists:
        for path in installer:
            path.commands.insert(0, _remove(*tried_lists))
    paths.extend(installer)
    return paths


# ── Editor ──────────────────────────────────────────────────────


def editor_paths(
    family: str,
    snap_editor: bool = False,
    microsoft_sources: list[str] | None = None,
    reinstall: bool = False,
) -> list[InstallPath]:
    """VS Code from Microsoft's repository (replacing the snap on apt)."""
    if family == "apt":
        repo_line = f"deb [arch=amd64 signed-by={MICROSOFT_KEYRING}] {VSCODE_APT_REPO} stable main\n"
        commands = []
        if snap_editor:
            commands.append(_sudo("snap", "remove", "code", check=False))
        commands += sanitize_microsoft_sources(microsoft_sources or [])
        commands.append(_remove(*(f"{APT_SOURCES_DIR}/{name}" for name in VSCODE_CONFLICTING_LISTS)))
        commands += [
            *_apt_keyring(MICROSOFT_KEY_URL, MICROSOFT_KEYRING),
            _write_root_file(_VSCODE_LIST, repo_line),
            *package_install("apt", ["code"], reinstall),
        ]
        return [InstallPath(name="code (packages.microsoft.com)", commands=commands)]

    if family in ("dnf", "zypper"):
        repo_dir = "/etc/yum.repos.d" if family == "dnf" else "/etc/zypp/repos.d"
        repo = (
            "[code]\n"
            "name=Visual Studio Code\n"
            f"baseurl={VSCODE_RPM_REPO}\n"
            "enabled=1\n"
            "gpgcheck=1\n"
            f"gpgkey={MICROSOFT_KEY_URL}\n"
        )
        commands = [
            _sudo("rpm", "--import", MICROSOFT_KEY_URL),
            _write_root_file(f"{repo_dir}/vscode.repo", repo),
            *package_install(family, ["code"], reinstall),
        ]
        return [InstallPath(name="code (packages.microsoft.com)", commands=commands)]
    return []


# ── Groups ──────────────────────────────────────────────────────


def group_paths(group: str, user: str) -> list[InstallPath]:
    """Additive membership: ``usermod -aG`` never drops existing groups."""
    return [
        InstallPath(
            name=f"usermod -aG {group} {user}",
            commands=[_sudo("usermod", "-aG", group, user)],
        ),
    ]
