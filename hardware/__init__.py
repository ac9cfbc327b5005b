"""Hardware probes for NVMe validation."""

__all__ = [
    "DmesgKernelLogProbe",
    "FioBenchmarkProbe",
    "HostEnvironmentSource",
    "LsblkInventory",
    "SmartctlHealthProbe",
    "SysfsLinkProbe",
]

_PROBE_MODULES = {
    "DmesgKernelLogProbe": "hardware.kernel_log",
    "FioBenchmarkProbe": "hardware.benchmark",
    "HostEnvironmentSource": "hardware.environment",
    "LsblkInventory": "hardware.inventory",
    "SmartctlHealthProbe": "hardware.smart",
    "SysfsLinkProbe": "hardware.link",
}


def __getattr__(name: str):
    module_name = _PROBE_MODULES.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib

    return getattr(importlib.import_module(module_name), name)
