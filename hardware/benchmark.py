"""Throughput benchmark probe backed by fio."""

from __future__ import annotations

import json
from pathlib import Path
import tempfile
from typing import Any

from core.logging import logger
from hardware.commands import ProbeError, run_command
from validation.models import BenchmarkProfile, BenchmarkResult, Device

DEFAULT_GRACE_S = 30.0


class FioBenchmarkProbe:
    """Run one fio profile against a raw device and parse its JSON report."""

    def __init__(
        self,
        work_dir: Path | None = None,
        size: str = "10G",
        grace_s: float = DEFAULT_GRACE_S,
    ) -> None:
        self._work_dir = Path(work_dir) if work_dir is not None else Path(tempfile.gettempdir())
        self._size = size
        self._grace_s = grace_s

    def run_profile(self, device: Device, profile: BenchmarkProfile) -> BenchmarkResult:
        """Run ``profile`` for its fixed duration.

        The process is killed if it runs past the duration plus the grace
        period; that surfaces as ``ProbeTimeout``.
        """

        self._work_dir.mkdir(parents=True, exist_ok=True)
        artifact = self._work_dir / f"{device.name}_{profile.name}.json"
        artifact.unlink(missing_ok=True)
        args = [
            "fio",
            f"--name={profile.name}",
            f"--filename={device.path}",
            f"--rw={profile.mode}",
            f"--bs={profile.block_size}",
            f"--numjobs={profile.jobs}",
            f"--iodepth={profile.queue_depth}",
            "--direct=1",
            f"--runtime={profile.duration_s}",
            "--time_based",
            "--group_reporting",
            f"--size={self._size}",
            "--output-format=json",
            f"--output={artifact}",
        ]
        try:
            proc = run_command(
                args,
                timeout_s=profile.duration_s + self._grace_s,
                check=False,
            )
            if proc.returncode != 0 or not artifact.is_file():
                return BenchmarkResult(
                    success=proc.returncode == 0,
                    artifact_present=artifact.is_file(),
                    detail=proc.stderr.strip() or f"exit status {proc.returncode}",
                )
            try:
                report = json.loads(artifact.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise ProbeError(f"fio report unreadable for {profile.name}: {exc}") from exc
            return parse_fio_report(report)
        finally:
            if artifact.exists():
                artifact.unlink()
                logger.debug("Removed fio artifact %s", artifact)


def parse_fio_report(report: dict[str, Any]) -> BenchmarkResult:
    """Sum read and write sides of the first job so any rw mode reports."""

    jobs = report.get("jobs") or []
    if not jobs or not isinstance(jobs[0], dict):
        return BenchmarkResult(success=True, artifact_present=True, detail="no jobs in report")
    job = jobs[0]
    read = job.get("read") or {}
    write = job.get("write") or {}

    bandwidth = _sum_field(read, write, "bw_bytes")
    iops = _sum_field(read, write, "iops")
    latency = _percentile(read) or _percentile(write)
    error = job.get("error")
    return BenchmarkResult(
        success=True,
        artifact_present=True,
        bandwidth_bytes=bandwidth,
        iops=iops,
        p99_latency_ns=latency,
        error_count=int(error) if isinstance(error, (int, float)) else None,
    )


def _sum_field(read: dict[str, Any], write: dict[str, Any], key: str) -> float | None:
    values = [side.get(key) for side in (read, write) if isinstance(side.get(key), (int, float))]
    if not values:
        return None
    return float(sum(values))


def _percentile(side: dict[str, Any]) -> float | None:
    clat = side.get("clat_ns") or {}
    percentiles = clat.get("percentile") or {}
    value = percentiles.get("99.000000")
    if isinstance(value, (int, float)) and value > 0:
        return float(value)
    return None
