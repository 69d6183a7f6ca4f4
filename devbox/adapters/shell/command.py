"""
Shell command adapter — run host commands as argv lists.

Every package-manager call, usermod and keyring fetch the reconciler
issues goes through here. Commands are never passed through a shell
unless the argv itself starts one (``sh -c`` for key pipelines).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from devbox.adapters.base import Adapter, ExecutionContext
from devbox.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep receipts small; installers can print megabytes
_OUTPUT_TAIL = 2000


def sudo_prefix(argv: list[str], needs_sudo: bool) -> list[str]:
    """Prefix *argv* with sudo when root is needed and we are not root."""
    if needs_sudo and os.geteuid() != 0:
        return ["sudo", *argv]
    return list(argv)


class ShellCommandAdapter(Adapter):
    """Execute host commands and capture output.

    Action params:
        argv (list[str]): The command to execute.
        sudo (bool): Escalate with sudo when not root (default: False).
        input (str): Data to pipe to stdin.
        timeout (int): Timeout in seconds (default: 1800).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv")
        if not argv or not isinstance(argv, list):
            return False, "Missing required param: 'argv'"
        if context.action.params.get("sudo") and os.geteuid() != 0 and not shutil.which("sudo"):
            return False, "Command needs root but sudo is not installed"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        argv = sudo_prefix(params["argv"], bool(params.get("sudo")))
        timeout = params.get("timeout", 1800)
        stdin_data = params.get("input")
        display = " ".join(argv)

        logger.debug("Executing: %s", display)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=stdin_data,
                cwd=context.working_dir,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": display, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": display},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.strip()[-_OUTPUT_TAIL:]
        stderr = result.stderr.strip()[-_OUTPUT_TAIL:]

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=output,
                duration_ms=elapsed_ms,
                metadata={
                    "command": display,
                    "return_code": 0,
                    "stderr": stderr,
                },
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={
                "command": display,
                "return_code": result.returncode,
                "stdout": output,
            },
        )
