"""
Generators — render the devcontainer artifacts.

Each generator module exposes a ``generate_*()`` function that returns
a fully rendered ``GeneratedFile``. Nothing here touches the disk.
"""
