"""
Adapter registry — central dispatch for all adapter operations.

The registry is the single point of adapter management. It handles
registration, lookup, mock mode, dry-run and action execution. The
engine never talks to an adapter directly, always through here.
"""

from __future__ import annotations

import logging
import time
from devbox.adapters.base import Adapter, ExecutionContext
from devbox.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    Features:
        - Register adapters by name
        - Mock mode: route every action to one mock adapter
        - Dry-run: validate but return a skip receipt
    """

    def __init__(self, mock_adapter: Adapter | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._mock_adapter = mock_adapter

    @property
    def mock_mode(self) -> bool:
        return self._mock_adapter is not None

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its name."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def get(self, name: str) -> Adapter | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def is_available(self, name: str) -> bool:
        """Whether the named adapter exists and its tool is usable."""
        if self._mock_adapter is not None:
            return self._mock_adapter.is_available()
        adapter = self._adapters.get(name)
        if adapter is None:
            return False
        try:
            return adapter.is_available()
        except Exception:
            return False

    def execute_action(
        self,
        action: Action,
        working_dir: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Execute an action through the appropriate adapter.

        1. Resolves the adapter (or mock)
        2. Validates the action
        3. Executes (or dry-runs)
        4. Returns a Receipt (never raises)
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            action=action,
            working_dir=working_dir,
            dry_run=dry_run,
            params=action.params,
        )

        adapter = self._mock_adapter or self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] {action.name or action.id}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt


def default_registry() -> AdapterRegistry:
    """Registry wired with the real shell and docker adapters."""
    from devbox.adapters.containers.docker import DockerAdapter
    from devbox.adapters.shell.command import ShellCommandAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(DockerAdapter())
    return registry
