"""SMART health probe backed by smartctl JSON output."""

from __future__ import annotations

import json
from typing import Any

from hardware.commands import DEFAULT_TIMEOUT_S, ProbeError, run_command
from validation.models import Device, HealthReading


class SmartctlHealthProbe:
    """Read NVMe SMART health values with ``smartctl -a -j``."""

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self._timeout_s = timeout_s

    def read_health(self, device: Device) -> HealthReading:
        # smartctl return codes are a bitmask; non-zero can still include valid JSON
        proc = run_command(
            ["smartctl", "-a", "-j", device.path],
            timeout_s=self._timeout_s,
            check=False,
        )
        if not proc.stdout.strip():
            raise ProbeError(proc.stderr.strip() or f"smartctl failed for {device.path}")
        try:
            data = json.loads(proc.stdout)
        except json.JSONDecodeError as exc:
            raise ProbeError(f"smartctl returned non-JSON output for {device.path}") from exc
        return parse_health(data)


def parse_health(data: dict[str, Any]) -> HealthReading:
    """Extract the health fields from a smartctl JSON document."""

    self_assessment = None
    status = data.get("smart_status")
    if isinstance(status, dict) and isinstance(status.get("passed"), bool):
        self_assessment = "PASSED" if status["passed"] else "FAILED"

    nvme = data.get("nvme_smart_health_information_log")
    if not isinstance(nvme, dict):
        nvme = {}

    temperature = None
    if isinstance(data.get("temperature"), dict):
        temperature = _to_number(data["temperature"].get("current"))
    if temperature is None:
        temperature = _to_number(nvme.get("temperature"))

    return HealthReading(
        self_assessment=self_assessment,
        critical_warning=_to_int(nvme.get("critical_warning")),
        temperature_c=temperature,
        media_errors=_to_int(nvme.get("media_errors")),
    )


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_number(value: Any) -> int | float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
