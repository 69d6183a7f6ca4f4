"""
Run ledger — append-only record of bootstrap runs.

When enabled (``--audit`` or ``audit: true`` in devbox.yml) every
bootstrap appends one NDJSON line under the project directory: what was
resolved, what each resource decision was, which artifacts were written.

The ledger is history only. It is never read back to decide anything;
every run probes the live host again.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single bootstrap run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    scope: str = ""                # host, container, all
    dry_run: bool = False

    # Resolution
    rocm_version: str = ""
    rocm_fallback: bool = False
    package_family: str = ""

    # Results
    status: str = ""               # ok, partial, failed
    decisions: list[dict[str, Any]] = Field(default_factory=list)
    artifacts: list[dict[str, Any]] = Field(default_factory=list)
    duration_ms: int = 0

    errors: list[str] = Field(default_factory=list)


class AuditWriter:
    """Append-only ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.
    """

    def __init__(self, path: Path | None = None, project_root: Path | None = None):
        if path is not None:
            self._path = path
        elif project_root is not None:
            self._path = project_root / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append *entry*; a write failure is logged, never raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s", entry.operation_id)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)
