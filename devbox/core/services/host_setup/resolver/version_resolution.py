"""
L2 Resolver — ROCm version selection.

Turns a VersionSpec into exactly one ResolvedVersion for the run:

    explicit pin → "latest" request → built-in default

The "latest" request walks its own chain: the preferred series (if the
repo publishes it for this codename), then the repo's ``latest`` alias,
then the highest series scraped from the index listing.

Every non-alias result satisfies the minimum floor. A candidate below
the floor (or one that does not parse) is replaced by the default and
the substitution is logged as a warning, never silently.
"""

from __future__ import annotations

import logging
import re

from devbox.core.errors import UnresolvableVersion
from devbox.core.models.config import RocmSettings
from devbox.core.models.version import (
    LATEST_ALIAS,
    ResolvedVersion,
    VersionRequest,
    VersionSource,
    VersionSpec,
)
from devbox.core.services.host_setup.detection.network import RemoteIndex, listing_entries
from devbox.core.services.host_setup.domain.version_constraint import (
    highest_version,
    parse_version,
    series_at_least,
    series_of,
)

logger = logging.getLogger(__name__)

_INDEX_ENTRY_RE = re.compile(r"^\d+\.\d+(?:\.\d+)?$")


def series_release_url(settings: RocmSettings, series: str, codename: str = "") -> str:
    """URL of the ``InRelease`` file that proves *series* exists for *codename*."""
    base = settings.apt_index_url.rstrip("/")
    return f"{base}/{series}/dists/{codename or settings.fallback_codename}/InRelease"


def list_index_versions(index: RemoteIndex, settings: RocmSettings) -> list[str]:
    """Numeric versions published in the ROCm apt index, ascending.

    Returns an empty list when the index is unreachable.
    """
    listing = index.fetch(settings.apt_index_url)
    if not listing.ok:
        logger.warning("ROCm index %s unreachable: %s", settings.apt_index_url, listing.error)
        return []
    versions = {e for e in listing_entries(listing.value or "") if _INDEX_ENTRY_RE.match(e)}
    return sorted(versions, key=lambda v: parse_version(v) or (0, 0, 0))


def _resolve_latest(
    settings: RocmSettings,
    index: RemoteIndex,
    codename: str,
) -> tuple[str, VersionSource] | None:
    if index.exists(series_release_url(settings, settings.preferred_latest, codename)):
        return settings.preferred_latest, VersionSource.PREFERRED
    logger.info(
        "ROCm %s not published for %s; trying the '%s' alias",
        settings.preferred_latest, codename or settings.fallback_codename, LATEST_ALIAS,
    )
    if index.exists(series_release_url(settings, LATEST_ALIAS, codename)):
        return LATEST_ALIAS, VersionSource.ALIAS

    scraped = highest_version(list_index_versions(index, settings))
    if scraped:
        return scraped, VersionSource.INDEX
    return None


def resolve_version(
    spec: VersionSpec,
    settings: RocmSettings,
    index: RemoteIndex,
    codename: str = "",
) -> ResolvedVersion:
    """Choose the ROCm version for this run.

    Args:
        spec: What the operator asked for.
        settings: Default, floor and repository locations.
        index: Remote index client (probed only for ``latest``).
        codename: Host distribution codename, used in repo paths.

    Returns:
        The resolved version. ``fallback_used`` is True whenever the
        default replaced what was asked for.

    Raises:
        UnresolvableVersion: the default itself is below the floor.
    """
    default = settings.default_version
    if not series_at_least(default, spec.minimum):
        raise UnresolvableVersion(
            f"Default ROCm {default} does not satisfy the minimum {spec.minimum}"
        )

    if spec.requested is VersionRequest.EXPLICIT and spec.pin:
        candidate, source = spec.pin.strip(), VersionSource.PIN
    elif spec.requested is VersionRequest.LATEST:
        found = _resolve_latest(settings, index, codename)
        if found is None:
            logger.warning(
                "Could not discover a latest ROCm release; using default %s", default,
            )
            return ResolvedVersion(
                version=default,
                series=series_of(default),
                fallback_used=True,
                source=VersionSource.DEFAULT,
            )
        candidate, source = found
    else:
        candidate, source = default, VersionSource.DEFAULT

    if candidate == LATEST_ALIAS:
        logger.info("Using ROCm series alias '%s'", LATEST_ALIAS)
        return ResolvedVersion(version=LATEST_ALIAS, series=None, source=source)

    if not series_at_least(candidate, spec.minimum):
        logger.warning(
            "Requested ROCm %r is below the minimum %s (or not a version); "
            "falling back to %s",
            candidate, spec.minimum, default,
        )
        return ResolvedVersion(
            version=default,
            series=series_of(default),
            fallback_used=True,
            source=VersionSource.FLOOR_FALLBACK,
        )

    logger.info("Using ROCm %s (%s)", candidate, source.value)
    return ResolvedVersion(version=candidate, series=series_of(candidate), source=source)
