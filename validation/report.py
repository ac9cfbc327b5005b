"""Text rendering for the run header, entries, and summary."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from validation.models import EnvironmentIdentity, LogEntry, RunSnapshot

DEFAULT_WIDTH = 120
DEFAULT_TITLE = "NVMe Drive Validation"
TIMESTAMP_FORMAT = "%m/%d/%y %H:%M:%S"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return value.strftime(TIMESTAMP_FORMAT)


def format_size(value: int | None) -> str:
    if value is None:
        return "N/A"
    size = float(value)
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}P"


def format_entry(entry: LogEntry) -> str:
    """Return the ``[SEVERITY] [timestamp] [module] message`` line for an entry."""

    return (
        f"[{entry.severity.value}] [{format_timestamp(entry.timestamp)}] "
        f"[{entry.module}] {entry.message}"
    )


def render_divider(width: int = DEFAULT_WIDTH) -> str:
    return f"\n{'-' * width}\n"


def render_header(
    identity: EnvironmentIdentity,
    start_time: datetime,
    title: str = DEFAULT_TITLE,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Render the framed header block with host identity facts."""

    os_line = _or_na(identity.os_description)
    if identity.kernel_version:
        os_line = f"{os_line} (kernel {identity.kernel_version})"
    rows = [
        ("Product", identity.product),
        ("Platform", identity.platform),
        ("Serial Number", identity.serial_number),
        ("OS", os_line),
        ("BMC FW", identity.bmc_firmware),
        ("BIOS Version", identity.bios_version),
        ("Host", identity.hostname),
        ("Start Time", format_timestamp(start_time)),
    ]
    return _framed(title, rows, width) + "\n"


def render_summary(
    snapshot: RunSnapshot,
    log_path: Path | None = None,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Render the framed summary block from a run snapshot."""

    rows = [
        ("Total Tests", snapshot.total),
        ("Passed", snapshot.passed),
        ("Failed", snapshot.failed),
        ("Warnings", snapshot.warnings),
        ("Result", snapshot.result.value),
        ("End Time", format_timestamp(snapshot.end_time)),
        ("Log Location", str(log_path) if log_path is not None else None),
    ]
    return _framed("SUMMARY", rows, width)


def _framed(title: str, rows: list[tuple[str, object]], width: int) -> str:
    rule = "=" * width
    padding = max((width - len(title)) // 2, 0)
    lines = [rule, f"{' ' * padding}{title}", rule]
    lines.extend(f"{label:<15} : {_or_na(value)}" for label, value in rows)
    lines.append(rule)
    return "\n".join(lines)


def _or_na(value: object) -> str:
    return "N/A" if value is None or value == "" else str(value)
