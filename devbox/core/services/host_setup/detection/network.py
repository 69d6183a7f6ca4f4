"""
L3 Detection — Remote index probing.

Best-effort HTTP checks against the ROCm / AMDGPU package repositories:
does a series exist, what does a directory listing contain. Network
failure is never fatal here; it simply reads as "not available" and
the caller moves on to its next fallback.
"""

from __future__ import annotations

import logging
import re
import time
import urllib.error
import urllib.request

from devbox.core.models.result import Result

logger = logging.getLogger(__name__)

_USER_AGENT = "devbox/0.1"
_HREF_RE = re.compile(r'href="([^"?#]+)"', re.IGNORECASE)


class RemoteIndex:
    """Thin HTTP client for directory-style package indexes.

    Tests substitute a fake with the same two methods.
    """

    def __init__(self, timeout: int = 10):
        self.timeout = timeout

    def exists(self, url: str) -> bool:
        """HEAD *url*; any non-2xx answer or network error means absent."""
        start = time.monotonic()
        try:
            req = urllib.request.Request(
                url, method="HEAD", headers={"User-Agent": _USER_AGENT},
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                ok = 200 <= resp.getcode() < 300
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return False
        logger.debug(
            "HEAD %s → %s (%dms)", url, "ok" if ok else "missing",
            int((time.monotonic() - start) * 1000),
        )
        return ok

    def fetch(self, url: str) -> Result[str]:
        """GET *url* as text."""
        try:
            req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8", errors="replace")
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.debug("GET %s failed: %s", url, exc)
            return Result.failure(str(exc)[:200])
        return Result.success(body)


def listing_entries(html: str) -> list[str]:
    """Extract link targets from a directory listing, trailing slash removed."""
    entries = []
    for href in _HREF_RE.findall(html):
        entry = href.rstrip("/").rsplit("/", 1)[-1]
        if entry and entry not in ("..", "."):
            entries.append(entry)
    return entries
