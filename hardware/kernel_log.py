"""Kernel ring buffer probe backed by dmesg."""

from __future__ import annotations

from hardware.commands import DEFAULT_TIMEOUT_S, run_command
from validation.models import KernelLogPattern


class DmesgKernelLogProbe:
    """Clear and scan the kernel ring buffer for NVMe error patterns."""

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S, subsystem: str = "nvme") -> None:
        self._timeout_s = timeout_s
        self._subsystem = subsystem.lower()

    def reset_buffer(self) -> None:
        run_command(["dmesg", "-C"], timeout_s=self._timeout_s)

    def count_pattern(self, pattern: KernelLogPattern) -> int:
        output = run_command(["dmesg"], timeout_s=self._timeout_s).stdout
        return count_matches(output, pattern, self._subsystem)


def count_matches(text: str, pattern: KernelLogPattern, subsystem: str = "nvme") -> int:
    """Count lines mentioning ``subsystem`` that contain the pattern, case-insensitive."""

    needle = KernelLogPattern(pattern).value
    count = 0
    for line in text.splitlines():
        lowered = line.lower()
        if subsystem in lowered and needle in lowered:
            count += 1
    return count
