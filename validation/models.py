"""Models for validation runs, devices, and probe readings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Severity(str, Enum):
    """Classification for a single log entry."""

    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"
    INFO = "INFO"


class KernelLogPattern(str, Enum):
    """Kernel ring buffer pattern classes scanned after the benchmark."""

    IO_ERROR = "i/o error"
    LINK_DOWN = "link down"


@dataclass(frozen=True)
class Device:
    """Identity of an enumerated NVMe block device."""

    path: str
    name: str
    model: str | None = None
    serial: str | None = None
    size_bytes: int | None = None


@dataclass(frozen=True)
class LinkState:
    """PCIe link state read for a device. ``None`` marks an unavailable field."""

    current_width: int | None
    max_width: int | None
    current_speed: str | None
    max_speed: str | None
    pci_address: str | None = None


@dataclass(frozen=True)
class HealthReading:
    """SMART health values read for a device."""

    self_assessment: str | None
    critical_warning: int | str | None
    temperature_c: int | float | None
    media_errors: int | None


@dataclass(frozen=True)
class BenchmarkProfile:
    """Fixed I/O profile run against a device."""

    name: str
    mode: str
    block_size: str
    jobs: int
    queue_depth: int
    duration_s: int = 10


@dataclass(frozen=True)
class BenchmarkResult:
    """Outcome of a single benchmark profile run."""

    success: bool
    artifact_present: bool
    bandwidth_bytes: float | None = None
    iops: float | None = None
    p99_latency_ns: float | None = None
    error_count: int | None = None
    detail: str | None = None


@dataclass(frozen=True)
class EnvironmentIdentity:
    """Host identity facts shown in the report header."""

    product: str | None = None
    platform: str | None = None
    serial_number: str | None = None
    os_description: str | None = None
    kernel_version: str | None = None
    bmc_firmware: str | None = None
    bios_version: str | None = None
    hostname: str | None = None


@dataclass(frozen=True)
class Outcome:
    """Classified result of applying one rule to one probe reading."""

    severity: Severity
    message: str


@dataclass(frozen=True)
class LogEntry:
    """Timestamped entry appended to the run log."""

    severity: Severity
    timestamp: datetime
    module: str
    message: str


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of run counters and entries."""

    total: int
    passed: int
    failed: int
    warnings: int
    entries: tuple[LogEntry, ...]
    start_time: datetime
    end_time: datetime | None = None

    @property
    def result(self) -> Severity:
        """Overall result; warnings never flip it."""

        return Severity.FAIL if self.failed > 0 else Severity.PASS
