"""Host identity facts for the report header."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import platform
import socket

from core.logging import logger
from hardware.commands import DEFAULT_TIMEOUT_S, ProbeError, run_command
from validation.models import EnvironmentIdentity

DMI_ROOT = Path("/sys/devices/virtual/dmi/id")
OS_RELEASE = Path("/etc/os-release")


class HostEnvironmentSource:
    """Collect identity facts; each unreadable fact is left as ``None``."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        dmi_root: Path = DMI_ROOT,
        os_release: Path = OS_RELEASE,
    ) -> None:
        self._timeout_s = timeout_s
        self._dmi_root = Path(dmi_root)
        self._os_release = Path(os_release)

    def identity(self) -> EnvironmentIdentity:
        return EnvironmentIdentity(
            product=self._dmi("product_name", "system-product-name"),
            platform=self._safe(self._gpu_name),
            serial_number=self._dmi("product_serial", "system-serial-number"),
            os_description=self._safe(self._os_description),
            kernel_version=platform.release() or None,
            bmc_firmware=self._safe(self._bmc_firmware),
            bios_version=self._dmi("bios_version", "bios-version"),
            hostname=socket.gethostname() or None,
        )

    def _dmi(self, sysfs_name: str, dmidecode_key: str) -> str | None:
        path = self._dmi_root / sysfs_name
        try:
            value = path.read_text(encoding="utf-8", errors="ignore").strip()
        except OSError:
            value = ""
        if value and value != "None":
            return value
        return self._safe(
            lambda: run_command(
                ["dmidecode", "-s", dmidecode_key],
                timeout_s=self._timeout_s,
            ).stdout.strip()
        )

    def _gpu_name(self) -> str | None:
        output = run_command(
            ["nvidia-smi", "--query-gpu=name", "--format=csv,noheader"],
            timeout_s=self._timeout_s,
        ).stdout
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        return lines[0] if lines else None

    def _bmc_firmware(self) -> str | None:
        output = run_command(["ipmitool", "mc", "info"], timeout_s=self._timeout_s).stdout
        for line in output.splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == "firmware revision":
                return value.strip() or None
        return None

    def _os_description(self) -> str | None:
        fields = parse_os_release(self._os_release.read_text(encoding="utf-8"))
        return fields.get("PRETTY_NAME") or fields.get("NAME")

    def _safe(self, fn: Callable[[], str | None]) -> str | None:
        try:
            return fn() or None
        except (ProbeError, OSError) as exc:
            logger.debug("Identity fact unavailable: %s", exc)
            return None


def parse_os_release(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        fields[key] = value.strip().strip('"').strip("'")
    return fields
