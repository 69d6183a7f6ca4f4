"""
Docker adapter — read-only queries against container images.

Uses the docker CLI — never the Docker API directly. The bootstrapper
only needs one operation: asking a base image which account owns a
given UID, so the generated Dockerfile can reuse it.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from devbox.adapters.base import Adapter, ExecutionContext
from devbox.core.models.action import Receipt

logger = logging.getLogger(__name__)


class DockerAdapter(Adapter):
    """Container image inspection through the docker CLI.

    Action params:
        operation (str): Must be 'passwd_lookup'.
        image (str): Image reference.
        uid (int): UID to look up.
        timeout (int): Timeout in seconds (default: 300, image pulls are slow).
    """

    _OPERATIONS = {"passwd_lookup"}

    @property
    def name(self) -> str:
        return "docker"

    def is_available(self) -> bool:
        return shutil.which("docker") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation not in self._OPERATIONS:
            return False, (
                f"Unknown operation '{operation}'. "
                f"Valid: {', '.join(sorted(self._OPERATIONS))}"
            )
        if not context.action.params.get("image"):
            return False, "Missing required param: 'image'"
        if not isinstance(context.action.params.get("uid"), int):
            return False, "Missing required param: 'uid'"
        if not self.is_available():
            return False, "docker CLI not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        args = [
            "run", "--rm", "--entrypoint", "sh", params["image"],
            "-c", f"getent passwd {int(params['uid'])} || true",
        ]
        return self._docker(context, args, params.get("timeout", 300))

    # ── Helpers ─────────────────────────────────────────────────

    def _docker(self, ctx: ExecutionContext, args: list[str], timeout: int) -> Receipt:
        start = time.monotonic()
        try:
            result = subprocess.run(
                ["docker", *args],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"docker {args[0]} timed out after {timeout}s",
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Docker error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=result.stderr.strip() or f"docker {args[0]} failed",
                duration_ms=elapsed_ms,
                metadata={"return_code": result.returncode},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=result.stdout.strip(),
            duration_ms=elapsed_ms,
        )
