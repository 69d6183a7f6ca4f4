"""
L2 Resolver — Remote install sources for the GPU stack.

Finds what actually exists upstream before the planner commits to it:
which ROCm apt series are published for this codename, and which
``amdgpu-install`` packages can be downloaded. Adding an apt source
that 404s breaks every later ``apt-get update``, so only confirmed
series are handed to the planner.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from devbox.core.models.config import RocmSettings
from devbox.core.models.host import HostProfile, PackageFamily
from devbox.core.models.result import Result
from devbox.core.models.version import ResolvedVersion
from devbox.core.services.host_setup.data.constants import INSTALLER_RPM_SUBDIRS
from devbox.core.services.host_setup.detection.network import RemoteIndex, listing_entries
from devbox.core.services.host_setup.resolver.version_resolution import series_release_url

logger = logging.getLogger(__name__)

_DEB_RE = re.compile(r"^amdgpu-install_.+_all\.deb$")
_RPM_RE = re.compile(r"^amdgpu-install-[0-9.\-]+(?:\.el\d+)?\.noarch\.rpm$")
_DIGITS_RE = re.compile(r"(\d+)")


class RemoteSources(BaseModel):
    """Upstream locations confirmed to exist, in preference order."""

    rocm_apt_series: list[str] = Field(default_factory=list)
    installer_urls: list[str] = Field(default_factory=list)


def _natural_key(name: str) -> list:
    return [int(p) if p.isdigit() else p for p in _DIGITS_RE.split(name)]


def _unique(items: list[str]) -> list[str]:
    out: list[str] = []
    for item in items:
        if item and item not in out:
            out.append(item)
    return out


def _pick_from_listing(
    index: RemoteIndex,
    url: str,
    pattern: re.Pattern,
) -> str | None:
    listing = index.fetch(url)
    if not listing.ok:
        logger.debug("No installer listing at %s: %s", url, listing.error)
        return None
    matches = [e for e in listing_entries(listing.value or "") if pattern.match(e)]
    if not matches:
        return None
    return url + max(matches, key=_natural_key)


def locate_amdgpu_installer(
    version: str,
    profile: HostProfile,
    settings: RocmSettings,
    index: RemoteIndex,
) -> Result[str]:
    """Find a downloadable ``amdgpu-install`` package for *version*.

    apt hosts try the host codename first, then each configured
    fallback codename. dnf / zypper hosts try the RHEL 9 then RHEL 8
    trees.

    Returns:
        Result with the package URL, or a failure naming what was tried.
    """
    base = settings.installer_index_url.rstrip("/") + "/" + version.strip()
    tried: list[str] = []

    if profile.package_family is PackageFamily.APT:
        for codename in _unique([profile.os_codename, *settings.installer_codenames]):
            url = f"{base}/ubuntu/{codename}/"
            tried.append(url)
            found = _pick_from_listing(index, url, _DEB_RE)
            if found:
                return Result.success(found)
    elif profile.package_family in (PackageFamily.DNF, PackageFamily.ZYPPER):
        for subdir in INSTALLER_RPM_SUBDIRS:
            url = f"{base}/{subdir}/"
            tried.append(url)
            found = _pick_from_listing(index, url, _RPM_RE)
            if found:
                return Result.success(found)
    else:
        return Result.failure("no supported package manager for amdgpu-install")

    return Result.failure(f"amdgpu-install not found under: {', '.join(tried)}")


def confirmed_apt_series(
    candidates: list[str],
    codename: str,
    settings: RocmSettings,
    index: RemoteIndex,
) -> list[str]:
    """Keep the series from *candidates* whose apt repo is published."""
    confirmed = []
    for series in _unique(candidates):
        if index.exists(series_release_url(settings, series, codename)):
            confirmed.append(series)
        else:
            logger.info(
                "ROCm apt series %s not published for %s",
                series, codename or settings.fallback_codename,
            )
    return confirmed


def gather_remote_sources(
    resolved: ResolvedVersion,
    profile: HostProfile,
    settings: RocmSettings,
    index: RemoteIndex,
    need_installer: bool = True,
    need_apt_series: bool = False,
) -> RemoteSources:
    """Collect every upstream source the planner may need.

    The resolved version is tried first and the built-in default
    second, so a pin the repo does not carry still has a way forward.
    """
    versions = _unique([resolved.version, settings.default_version])
    sources = RemoteSources()

    if need_installer:
        for version in versions:
            found = locate_amdgpu_installer(version, profile, settings, index)
            if found.ok and found.value:
                logger.info("amdgpu-install for %s: %s", version, found.value)
                sources.installer_urls.append(found.value)
            else:
                logger.warning("amdgpu-install for %s: %s", version, found.error)
        sources.installer_urls = _unique(sources.installer_urls)

    if need_apt_series and profile.package_family is PackageFamily.APT:
        sources.rocm_apt_series = confirmed_apt_series(
            versions, profile.os_codename, settings, index,
        )

    return sources
