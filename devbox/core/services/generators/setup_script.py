"""
setup.sh generator — post-create check run inside the container.

Prints the torch / HIP versions and fails the post-create step when
PyTorch is missing or was not built for ROCm.
"""

from __future__ import annotations

from devbox.core.models.template import GeneratedFile

_SETUP_SH = """\
#!/usr/bin/env bash
set -euo pipefail

python - <<'PY'
import sys

try:
    import torch
except Exception as exc:
    print(f"FAIL: torch is not importable: {exc}")
    sys.exit(1)

hip = getattr(torch.version, "hip", None)
print("torch:", torch.__version__)
print("torch.version.hip:", hip)
print("GPU visible (torch.cuda.is_available):", torch.cuda.is_available())

if not hip:
    print("FAIL: this torch build has no ROCm/HIP support")
    sys.exit(1)

print("OK: ROCm PyTorch environment ready.")
PY
"""


def generate_setup_script(
    *,
    overwrite: bool = False,
    output_path: str = "setup.sh",
) -> GeneratedFile:
    """Generate the executable verification script."""
    return GeneratedFile(
        path=output_path,
        content=_SETUP_SH,
        overwrite=overwrite,
        executable=True,
        reason="post-create ROCm/PyTorch check",
    )
