"""Adapters — bindings for the external tools devbox drives.

Public re-exports for convenient access.
"""

from devbox.adapters.base import Adapter, ExecutionContext
from devbox.adapters.mock import MockAdapter
from devbox.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
