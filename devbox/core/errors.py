"""
Exception hierarchy for devbox.

Only genuinely fatal conditions are exceptions. Everything recoverable
(network probes, optional installs, best-effort commands) travels as a
``Result`` or a ``Receipt`` and is logged where it happens.
"""

from __future__ import annotations


class DevboxError(Exception):
    """Base class for all devbox errors."""


class ConfigError(DevboxError):
    """Raised when configuration is invalid or unreadable."""


class UnresolvableVersion(DevboxError):
    """Raised when no version candidate satisfies the minimum floor.

    The built-in default is validated to satisfy the floor, so reaching
    this means the configuration or the resolver is broken.
    """


class RequiredResourceError(DevboxError):
    """Raised when every install path for a required resource failed."""

    def __init__(self, resource: str, attempts: list[str] | None = None):
        self.resource = resource
        self.attempts = attempts or []
        detail = f" (tried: {', '.join(self.attempts)})" if self.attempts else ""
        super().__init__(f"Required resource '{resource}' could not be installed{detail}")
