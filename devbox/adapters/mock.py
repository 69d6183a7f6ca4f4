"""
Mock adapter — universal test double for all adapter operations.

Simulates host commands without touching the machine. Responses can be
configured per action ID or by matching the command line, which is how
tests script "apt repo missing, installer works" style scenarios.
"""

from __future__ import annotations

from devbox.adapters.base import Adapter, ExecutionContext
from devbox.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._command_failures: dict[str, str] = {}
        self._command_outputs: dict[str, str] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Command lines received, joined with spaces."""
        return [_command_line(ctx) for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
        )

    def fail_when(self, fragment: str, error: str = "Mock failure") -> None:
        """Fail any command whose command line contains *fragment*."""
        self._command_failures[fragment] = error

    def output_when(self, fragment: str, output: str) -> None:
        """Return *output* for any command containing *fragment*."""
        self._command_outputs[fragment] = output

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        line = _command_line(context)
        for fragment, error in self._command_failures.items():
            if fragment in line:
                return Receipt.failure(
                    adapter=self._name,
                    action_id=context.action.id,
                    error=error,
                )

        output = self._default_output
        for fragment, text in self._command_outputs.items():
            if fragment in line:
                output = text
                break

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
        self._command_failures.clear()
        self._command_outputs.clear()


def _command_line(ctx: ExecutionContext) -> str:
    params = ctx.action.params
    if "argv" in params:
        return " ".join(params["argv"])
    return " ".join(str(v) for v in params.values())
