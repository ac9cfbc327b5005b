"""Threshold rules mapping probe readings to classified outcomes."""

from __future__ import annotations

from validation.models import (
    BenchmarkProfile,
    BenchmarkResult,
    KernelLogPattern,
    Outcome,
    Severity,
)

TEMPERATURE_LIMIT_C = 70

_PATTERN_LABELS = {
    KernelLogPattern.IO_ERROR: "NVMe I/O errors",
    KernelLogPattern.LINK_DOWN: "NVMe Link Down events",
}


def evaluate_environment(log_dir_present: bool, log_file_present: bool) -> Outcome:
    """Classify the log directory and log file checks."""

    if log_dir_present and log_file_present:
        return Outcome(Severity.PASS, "Environment Validation Passed")
    missing = []
    if not log_dir_present:
        missing.append("log directory")
    if not log_file_present:
        missing.append("log file")
    return Outcome(
        Severity.FAIL,
        f"Environment Validation Failed: missing {' and '.join(missing)}",
    )


def evaluate_link_width(current: int | None, maximum: int | None) -> Outcome:
    """Compare the negotiated PCIe link width against the device maximum.

    A mismatch is a warning only. An unreadable width is also reported as a
    warning, never as an equal link.
    """

    if current is None or maximum is None:
        return Outcome(
            Severity.WARN,
            f"Link width unavailable (current: {_or_na(current)}, maximum: {_or_na(maximum)})",
        )
    if current != maximum:
        return Outcome(
            Severity.WARN,
            f"Link Drop Detected: Current Link Width: x{current}  Expected Link Width: x{maximum}",
        )
    return Outcome(Severity.INFO, f"Current Link Width is equal to Maximum Link Width (x{current})")


def evaluate_link_speed(current: str | None, maximum: str | None) -> Outcome:
    """Compare the negotiated PCIe link speed against the device maximum."""

    if not current or not maximum:
        return Outcome(
            Severity.WARN,
            f"Link speed unavailable (current: {_or_na(current)}, maximum: {_or_na(maximum)})",
        )
    if current.strip() != maximum.strip():
        return Outcome(
            Severity.WARN,
            f"Current Link Speed: {current}  Expected Link Speed: {maximum}",
        )
    return Outcome(Severity.INFO, f"Current Link Speed is equal to Maximum Link Speed ({current})")


def evaluate_self_assessment(value: str | None) -> Outcome:
    """Pass only on a ``PASSED`` SMART overall-health self-assessment."""

    if value is None:
        return Outcome(Severity.FAIL, "Smart Health Self-Assessment: unavailable")
    if value.strip().upper() == "PASSED":
        return Outcome(Severity.PASS, "Smart Health Self-Assessment: PASSED")
    return Outcome(Severity.FAIL, f"Smart Health Self-Assessment: {value}")


def evaluate_critical_warning(code: int | str | None, device_path: str) -> Outcome:
    """Classify the NVMe critical warning bitfield; any set bit fails the drive."""

    parsed = parse_warning_code(code)
    if parsed is None:
        return Outcome(
            Severity.FAIL,
            f"Device: {device_path} Critical Warning unavailable ({_or_na(code)})",
        )
    if parsed == 0:
        return Outcome(Severity.PASS, "Critical Warnings Found: 0")
    return Outcome(
        Severity.FAIL,
        f"Device: {device_path} Critical Warning Found (0x{parsed:02x}), Replace Drive",
    )


def evaluate_temperature(value: int | float | None, limit: int | float = TEMPERATURE_LIMIT_C) -> Outcome:
    """Fail at or above ``limit`` degrees Celsius; a missing reading also fails."""

    if value is None:
        return Outcome(Severity.FAIL, "Drive temperature unavailable")
    if value < limit:
        return Outcome(Severity.PASS, f"Drive temps don't exceed {limit:g}°C")
    return Outcome(Severity.FAIL, f"Drive Temp {value}°C Exceeds {limit:g}°C")


def evaluate_integrity_errors(count: int | None) -> Outcome:
    """Fail on any media or data integrity error, or when the count is unreadable."""

    if count is None:
        return Outcome(Severity.FAIL, "Media or Data Integrity Errors: unavailable")
    if count == 0:
        return Outcome(Severity.PASS, "Media or Data Integrity Errors: 0")
    return Outcome(
        Severity.FAIL,
        f"This drive has {count} Media or Data Integrity Errors",
    )


def evaluate_benchmark(profile: BenchmarkProfile, result: BenchmarkResult) -> Outcome:
    """Classify a benchmark profile run and summarize its throughput.

    The profile passes only when the run succeeded, its result artifact was
    produced, and bandwidth and IOPS could be read from it.
    """

    if not result.success or not result.artifact_present:
        reason = f": {result.detail}" if result.detail else ""
        return Outcome(Severity.FAIL, f"FIO failed during {profile.name} profile{reason}")
    if result.bandwidth_bytes is None or result.iops is None:
        return Outcome(
            Severity.FAIL,
            f"FIO results unreadable for {profile.name} profile",
        )

    bandwidth_mib = result.bandwidth_bytes / 1024 / 1024
    parts = [f"{bandwidth_mib:.2f} MiB/s", f"{int(result.iops):,} IOPS"]
    if result.p99_latency_ns is not None:
        parts.append(f"p99 Latency: {result.p99_latency_ns / 1000:.2f} us")
    parts.append(f"Error Count: {_or_na(result.error_count)}")
    return Outcome(Severity.PASS, f"{profile.name} Result: {' | '.join(parts)}")


def evaluate_kernel_log(pattern: KernelLogPattern, count: int | None) -> Outcome:
    """Fail when the kernel log holds any line matching ``pattern`` since the reset."""

    label = _PATTERN_LABELS[pattern]
    if count is None:
        return Outcome(Severity.FAIL, f"Kernel log scan for {label} unavailable")
    if count == 0:
        return Outcome(Severity.PASS, f"No {label} detected in kernel log")
    return Outcome(Severity.FAIL, f"Found {count} {label} in kernel log")


def parse_warning_code(code: int | str | None) -> int | None:
    """Return the critical warning bitfield as an int, or None if unreadable."""

    if code is None or isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    text = str(code).strip()
    if not text:
        return None
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except ValueError:
        return None


def _or_na(value: object) -> str:
    return "N/A" if value is None or value == "" else str(value)
