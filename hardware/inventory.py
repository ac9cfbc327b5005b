"""NVMe device inventory backed by lsblk and findmnt."""

from __future__ import annotations

import json
from typing import Any

from hardware.commands import DEFAULT_TIMEOUT_S, ProbeError, run_command
from validation.models import Device


class LsblkInventory:
    """Enumerate NVMe disks and resolve the disk backing the root filesystem."""

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S, prefix: str = "nvme") -> None:
        self._timeout_s = timeout_s
        self._prefix = prefix

    def list_nvme_devices(self) -> list[Device]:
        data = self._lsblk_json(["-d", "-b", "-o", "NAME,TYPE,SIZE,MODEL,SERIAL"])
        result: list[Device] = []
        for dev in data.get("blockdevices", []) or []:
            name = dev.get("name")
            if not name or not str(name).startswith(self._prefix):
                continue
            if dev.get("type") not in (None, "disk"):
                continue
            result.append(
                Device(
                    path=f"/dev/{name}",
                    name=str(name),
                    model=_clean(dev.get("model")),
                    serial=_clean(dev.get("serial")),
                    size_bytes=_to_int(dev.get("size")),
                )
            )
        return sorted(result, key=lambda device: device.name)

    def root_backing_device(self) -> str:
        """Return the disk name under ``/``, walking partitions, LVM and crypt layers.

        Raises:
            ProbeError: The root source is not a block device (ZFS dataset,
                overlay, NFS) or cannot be resolved to exactly one disk.
        """

        source = run_command(
            ["findmnt", "-n", "-o", "SOURCE", "/"],
            timeout_s=self._timeout_s,
        ).stdout.strip()
        if not source:
            raise ProbeError("findmnt returned no source for /")
        # btrfs subvolumes are reported as /dev/xyz[/@]
        source = source.split("[", 1)[0]
        if not source.startswith("/dev/"):
            raise ProbeError(f"Root source {source} cannot be resolved to a block device")

        data = self._lsblk_json(["-s", "-o", "NAME,TYPE", source])
        disks: set[str] = set()
        for node in data.get("blockdevices", []) or []:
            _collect_disks(node, disks)
        if not disks:
            raise ProbeError(f"No backing disk found for root source {source}")
        if len(disks) > 1:
            raise ProbeError(
                f"Root filesystem spans multiple disks: {', '.join(sorted(disks))}"
            )
        return disks.pop()

    def _lsblk_json(self, extra: list[str]) -> dict[str, Any]:
        proc = run_command(["lsblk", "-J", *extra], timeout_s=self._timeout_s)
        if not proc.stdout.strip():
            raise ProbeError(proc.stderr.strip() or "lsblk returned no output")
        try:
            return json.loads(proc.stdout)
        except json.JSONDecodeError as exc:
            raise ProbeError(f"lsblk returned non-JSON output: {exc}") from exc


def _collect_disks(node: dict[str, Any], disks: set[str]) -> None:
    if node.get("type") == "disk" and node.get("name"):
        disks.add(str(node["name"]))
        return
    for child in node.get("children", []) or []:
        _collect_disks(child, disks)


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
