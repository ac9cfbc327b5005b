"""Command-line entry point for NVMe drive validation."""

from __future__ import annotations

import argparse
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
import os
from pathlib import Path
import signal
import sys
import tempfile
import threading
from typing import Any, Iterator

import yaml

from config import ConfigController
from core.logging import (
    disable_file_logging,
    emit,
    emit_entry,
    enable_file_logging,
    log_error,
    log_hint,
    logger,
    set_level,
)
from hardware.benchmark import FioBenchmarkProbe
from hardware.environment import HostEnvironmentSource
from hardware.inventory import LsblkInventory
from hardware.kernel_log import DmesgKernelLogProbe
from hardware.link import SysfsLinkProbe
from hardware.nvme_hal import (
    EnvironmentSource,
    FakeBenchmarkProbe,
    FakeEnvironment,
    FakeHealthProbe,
    FakeInventory,
    FakeKernelLog,
    FakeLinkProbe,
)
from hardware.smart import SmartctlHealthProbe
from validation.models import EnvironmentIdentity, Severity
from validation.orchestrator import (
    RUN_MODULE,
    CheckOrchestrator,
    OrchestratorSettings,
    ValidationProbes,
)
from validation.recorder import RunRecorder
from validation.report import render_header, render_summary

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_ENVIRONMENT = 2

LOG_TIMESTAMP_FORMAT = "%m-%d-%y_%H:%M:%S"


class EnvironmentSetupError(RuntimeError):
    """Fatal condition detected before any check runs."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Validate NVMe drives and log the results.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run against fake probes in a temporary log directory.",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for the run log (overrides configuration).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML file merged over the packaged defaults.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel workers for link and SMART checks (benchmark always runs serially).",
    )
    parser.add_argument(
        "--skip-benchmark",
        action="store_true",
        help="Skip the fio read/write benchmark.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging of probe commands.",
    )
    return parser.parse_args(argv)


def prepare_log_file(log_dir: Path, log_name: str, now: datetime | None = None) -> Path:
    """Create the log directory and an empty run log file.

    Raises:
        EnvironmentSetupError: The directory or file cannot be created.
    """

    stamp = (now or datetime.now()).strftime(LOG_TIMESTAMP_FORMAT)
    log_path = log_dir / f"{log_name}_{stamp}.log"
    try:
        if not log_dir.is_dir():
            log_dir.mkdir(parents=True, exist_ok=True)
            log_dir.chmod(0o755)
        log_path.touch()
    except OSError as exc:
        raise EnvironmentSetupError(f"Unable to create log file {log_path}: {exc}") from exc
    return log_path


def build_live_probes(config: dict[str, Any]) -> tuple[ValidationProbes, EnvironmentSource]:
    timeout_s = config["probes"]["timeout_s"]
    benchmark_cfg = config["benchmark"]
    work_dir = benchmark_cfg.get("work_dir") or config["report"]["log_dir"]
    probes = ValidationProbes(
        inventory=LsblkInventory(timeout_s=timeout_s),
        link=SysfsLinkProbe(),
        health=SmartctlHealthProbe(timeout_s=timeout_s),
        benchmark=FioBenchmarkProbe(
            work_dir=Path(work_dir),
            size=benchmark_cfg["size"],
            grace_s=benchmark_cfg["grace_s"],
        ),
        kernel_log=DmesgKernelLogProbe(timeout_s=timeout_s),
    )
    return probes, HostEnvironmentSource(timeout_s=timeout_s)


def build_offline_probes() -> tuple[ValidationProbes, EnvironmentSource]:
    probes = ValidationProbes(
        inventory=FakeInventory(),
        link=FakeLinkProbe(),
        health=FakeHealthProbe(),
        benchmark=FakeBenchmarkProbe(),
        kernel_log=FakeKernelLog(),
    )
    return probes, FakeEnvironment()


@contextmanager
def cancellation_signals(cancel_event: threading.Event) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a cancel request for the running check."""

    def _handler(signum, _frame) -> None:
        logger.warning("Received %s; finishing current check", signal.Signals(signum).name)
        cancel_event.set()

    previous: dict[int, Any] = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, _handler)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def run_validation(
    probes: ValidationProbes,
    environment: EnvironmentSource,
    settings: OrchestratorSettings,
    *,
    title: str,
    log_path: Path | None,
    cancel_event: threading.Event | None = None,
) -> int:
    """Render the header, run every check, render the summary and return the exit code."""

    recorder = RunRecorder(sink=emit_entry)
    try:
        identity = environment.identity()
    except Exception:  # noqa: BLE001 - header facts are best effort
        logger.exception("Host identity unavailable")
        identity = EnvironmentIdentity()
    emit(render_header(identity, recorder.start_time, title, settings.width))

    orchestrator = CheckOrchestrator(
        recorder,
        probes,
        settings,
        cancel_event=cancel_event,
        output=emit,
    )
    try:
        snapshot = orchestrator.run()
    except Exception as exc:  # noqa: BLE001 - the summary is always written
        logger.exception("Validation run aborted")
        recorder.record(Severity.FAIL, RUN_MODULE, f"Validation aborted: {exc}")
        snapshot = recorder.finalize()
    emit(render_summary(snapshot, log_path, settings.width))
    return EXIT_FAIL if snapshot.result is Severity.FAIL else EXIT_PASS


def main(argv: list[str] | None = None) -> int:
    """Run NVMe validation and return an exit code."""

    args = parse_args(argv)
    try:
        config = ConfigController.get_instance(override_file=args.config).get_config()
    except (OSError, KeyError, ValueError, yaml.YAMLError) as exc:
        log_error(f"Unable to load configuration: {exc}")
        return EXIT_ENVIRONMENT
    set_level("DEBUG" if args.verbose else config["logging_level"])

    report_cfg = config["report"]
    if args.workers is not None:
        config["probes"] = {**config["probes"], "workers": max(args.workers, 1)}
    if args.skip_benchmark:
        config["benchmark"] = {**config["benchmark"], "enabled": False}

    if not args.offline and hasattr(os, "geteuid") and os.geteuid() != 0:
        log_error("This script must be run as root")
        log_hint(f"Example: sudo {Path(sys.argv[0]).name}")
        return EXIT_ENVIRONMENT

    with tempfile.TemporaryDirectory() as tmp_dir:
        if args.log_dir is not None:
            log_dir = args.log_dir
        elif args.offline:
            log_dir = Path(tmp_dir)
        else:
            log_dir = Path(report_cfg["log_dir"])

        try:
            log_path = prepare_log_file(log_dir, report_cfg["log_name"])
        except EnvironmentSetupError as exc:
            log_error(str(exc))
            return EXIT_ENVIRONMENT

        settings = OrchestratorSettings.from_config(config, log_dir=log_dir, log_file=log_path)
        if args.offline:
            probes, environment = build_offline_probes()
            settings = replace(settings, required_tools=())
        else:
            probes, environment = build_live_probes(config)

        cancel_event = threading.Event()
        enable_file_logging(log_path)
        try:
            with cancellation_signals(cancel_event):
                return run_validation(
                    probes,
                    environment,
                    settings,
                    title=report_cfg["title"],
                    log_path=log_path,
                    cancel_event=cancel_event,
                )
        finally:
            disable_file_logging()


if __name__ == "__main__":
    raise SystemExit(main())
