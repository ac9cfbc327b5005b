"""Configuration loading for NVMe validation runs.

``default.yaml`` ships beside this module; ``override.yaml`` in the same
directory, or a file passed with ``--config``, is merged over it.
"""

from config.controller import PACKAGE_CONFIG_DIR, ConfigController

__all__ = ["ConfigController", "PACKAGE_CONFIG_DIR"]
