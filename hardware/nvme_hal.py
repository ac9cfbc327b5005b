"""Probe interfaces and offline fakes for NVMe validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from hardware.commands import ProbeError
from validation.models import (
    BenchmarkProfile,
    BenchmarkResult,
    Device,
    EnvironmentIdentity,
    HealthReading,
    KernelLogPattern,
    LinkState,
)


class DeviceInventory(Protocol):
    """Source of candidate devices and the root filesystem's backing disk."""

    def list_nvme_devices(self) -> list[Device]:
        """Return enumerated NVMe devices."""

    def root_backing_device(self) -> str:
        """Return the disk name backing ``/``; raise ``ProbeError`` when it cannot be resolved."""


class LinkProbe(Protocol):
    def link_state(self, device: Device) -> LinkState:
        """Return the current and maximum PCIe link values."""


class HealthProbe(Protocol):
    def read_health(self, device: Device) -> HealthReading:
        """Return a fresh SMART health reading."""


class BenchmarkProbe(Protocol):
    def run_profile(self, device: Device, profile: BenchmarkProfile) -> BenchmarkResult:
        """Run one I/O profile for its fixed duration."""


class KernelLogProbe(Protocol):
    def reset_buffer(self) -> None:
        """Clear the kernel ring buffer."""

    def count_pattern(self, pattern: KernelLogPattern) -> int:
        """Count buffered lines matching a pattern class."""


class EnvironmentSource(Protocol):
    def identity(self) -> EnvironmentIdentity:
        """Return host identity facts."""


def _default_devices() -> list[Device]:
    return [
        Device(
            path="/dev/nvme0n1",
            name="nvme0n1",
            model="Offline NVMe OS Drive",
            serial="OFFLINE0000",
            size_bytes=960_197_124_096,
        ),
        Device(
            path="/dev/nvme1n1",
            name="nvme1n1",
            model="Offline NVMe Data Drive",
            serial="OFFLINE0001",
            size_bytes=3_840_755_982_336,
        ),
    ]


@dataclass
class FakeInventory:
    """Fake inventory; ``error`` raises from ``list_nvme_devices``."""

    devices: list[Device] = field(default_factory=_default_devices)
    root_device: str | None = "nvme0n1"
    error: str | None = None
    root_error: str | None = None
    calls: int = 0

    def list_nvme_devices(self) -> list[Device]:
        self.calls += 1
        if self.error:
            raise ProbeError(self.error)
        return list(self.devices)

    def root_backing_device(self) -> str | None:
        if self.root_error:
            raise ProbeError(self.root_error)
        return self.root_device


@dataclass
class FakeLinkProbe:
    """Fake link probe returning a full x4 Gen4 link unless overridden per device."""

    states: dict[str, LinkState] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def link_state(self, device: Device) -> LinkState:
        self.calls.append(device.name)
        if device.name in self.failing:
            raise ProbeError(f"link state unreadable for {device.path}")
        return self.states.get(
            device.name,
            LinkState(
                current_width=4,
                max_width=4,
                current_speed="16.0 GT/s PCIe",
                max_speed="16.0 GT/s PCIe",
                pci_address="0000:01:00.0",
            ),
        )


@dataclass
class FakeHealthProbe:
    """Fake SMART probe reporting a healthy drive unless overridden per device."""

    readings: dict[str, HealthReading] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def read_health(self, device: Device) -> HealthReading:
        self.calls.append(device.name)
        if device.name in self.failing:
            raise ProbeError(f"smartctl failed for {device.path}")
        return self.readings.get(
            device.name,
            HealthReading(
                self_assessment="PASSED",
                critical_warning=0,
                temperature_c=38,
                media_errors=0,
            ),
        )


@dataclass
class FakeBenchmarkProbe:
    """Fake fio probe; records every (device, profile) pair it was asked to run."""

    results: dict[tuple[str, str], BenchmarkResult] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    journal: list[str] | None = None

    def run_profile(self, device: Device, profile: BenchmarkProfile) -> BenchmarkResult:
        self.calls.append((device.name, profile.name))
        if self.journal is not None:
            self.journal.append(f"benchmark:{device.name}:{profile.name}")
        return self.results.get(
            (device.name, profile.name),
            BenchmarkResult(
                success=True,
                artifact_present=True,
                bandwidth_bytes=3_221_225_472.0,
                iops=24_576.0,
                p99_latency_ns=1_236_992.0,
                error_count=0,
            ),
        )


@dataclass
class FakeKernelLog:
    """Fake kernel ring buffer with fixed per-pattern counts."""

    counts: dict[KernelLogPattern, int] = field(default_factory=dict)
    reset_error: str | None = None
    resets: int = 0
    journal: list[str] | None = None

    def reset_buffer(self) -> None:
        if self.journal is not None:
            self.journal.append("reset")
        if self.reset_error:
            raise ProbeError(self.reset_error)
        self.resets += 1

    def count_pattern(self, pattern: KernelLogPattern) -> int:
        if self.journal is not None:
            self.journal.append(f"scan:{pattern.name}")
        return self.counts.get(pattern, 0)


@dataclass
class FakeEnvironment:
    identity_facts: EnvironmentIdentity = field(
        default_factory=lambda: EnvironmentIdentity(
            product="Offline Validation Host",
            platform="Offline Accelerator",
            serial_number="OFFLINE-SN",
            os_description="Offline Linux",
            kernel_version="0.0.0-offline",
            bmc_firmware="0.00",
            bios_version="0.0.0",
            hostname="offline-host",
        )
    )

    def identity(self) -> EnvironmentIdentity:
        return self.identity_facts
