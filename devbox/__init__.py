"""devbox — host + devcontainer bootstrapper for ROCm ML development."""

__version__ = "0.1.0"
