"""PCIe link state read from sysfs."""

from __future__ import annotations

from pathlib import Path

from validation.models import Device, LinkState

SYSFS_BLOCK = Path("/sys/block")


class SysfsLinkProbe:
    """Read negotiated and maximum PCIe link values for a block device."""

    def __init__(self, block_root: Path = SYSFS_BLOCK) -> None:
        self._block_root = Path(block_root)

    def link_state(self, device: Device) -> LinkState:
        controller = self._block_root / device.name / "device"
        pci = controller / "device"
        return LinkState(
            current_width=_read_int(pci / "current_link_width"),
            max_width=_read_int(pci / "max_link_width"),
            current_speed=_read_text(pci / "current_link_speed"),
            max_speed=_read_text(pci / "max_link_speed"),
            pci_address=_read_text(controller / "address"),
        )


def _read_text(path: Path) -> str | None:
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None


def _read_int(path: Path) -> int | None:
    value = _read_text(path)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
