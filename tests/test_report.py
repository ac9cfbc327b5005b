"""Tests for report rendering."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from validation.models import EnvironmentIdentity, LogEntry, RunSnapshot, Severity
from validation.report import (
    format_entry,
    format_size,
    render_divider,
    render_header,
    render_summary,
)

START = datetime(2026, 3, 4, 5, 6, 7)
END = datetime(2026, 3, 4, 5, 16, 7)


def test_format_entry_layout() -> None:
    entry = LogEntry(Severity.WARN, START, "link_check", "Link Drop Detected")
    assert format_entry(entry) == "[WARN] [03/04/26 05:06:07] [link_check] Link Drop Detected"


def test_header_is_framed_and_centered() -> None:
    identity = EnvironmentIdentity(
        product="DGX H100",
        platform="NVIDIA H100 80GB HBM3",
        serial_number="SN123",
        os_description="Ubuntu 22.04.4 LTS",
        kernel_version="5.15.0-105-generic",
        bmc_firmware="24.01.05",
        bios_version="1.2.3",
        hostname="node-01",
    )
    text = render_header(identity, START, "NVMe Drive Validation", width=40)
    lines = text.splitlines()

    assert lines[0] == "=" * 40
    assert lines[1] == " " * 9 + "NVMe Drive Validation"
    assert lines[2] == "=" * 40
    assert "Product         : DGX H100" in lines
    assert "OS              : Ubuntu 22.04.4 LTS (kernel 5.15.0-105-generic)" in lines
    assert "Start Time      : 03/04/26 05:06:07" in lines
    assert lines[-1] == "=" * 40


def test_header_marks_missing_facts() -> None:
    text = render_header(EnvironmentIdentity(), START, width=60)
    assert "BMC FW          : N/A" in text
    assert "OS              : N/A" in text


def test_summary_reports_counters_and_result() -> None:
    snapshot = RunSnapshot(
        total=5,
        passed=4,
        failed=1,
        warnings=2,
        entries=(),
        start_time=START,
        end_time=END,
    )
    text = render_summary(snapshot, Path("/var/tmp/hw-validation/run.log"), width=50)
    lines = text.splitlines()

    assert lines[1].strip() == "SUMMARY"
    assert "Total Tests     : 5" in lines
    assert "Passed          : 4" in lines
    assert "Failed          : 1" in lines
    assert "Warnings        : 2" in lines
    assert "Result          : FAIL" in lines
    assert "End Time        : 03/04/26 05:16:07" in lines
    assert "Log Location    : /var/tmp/hw-validation/run.log" in lines


def test_summary_passes_with_only_warnings() -> None:
    snapshot = RunSnapshot(
        total=1, passed=1, failed=0, warnings=3, entries=(), start_time=START, end_time=END
    )
    assert "Result          : PASS" in render_summary(snapshot)


def test_divider_and_size() -> None:
    assert render_divider(10) == "\n----------\n"
    assert format_size(None) == "N/A"
    assert format_size(0) == "0.0B"
    assert format_size(512) == "512.0B"
    assert format_size(960_197_124_096) == "894.3G"
