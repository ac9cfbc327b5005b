"""Check orchestrator sequencing the validation pipeline over NVMe devices."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
import threading
from typing import Any, Mapping

from core.logging import logger
from hardware.commands import ProbeError, find_tool
from hardware.nvme_hal import (
    BenchmarkProbe,
    DeviceInventory,
    HealthProbe,
    KernelLogProbe,
    LinkProbe,
)
from validation.evaluator import (
    TEMPERATURE_LIMIT_C,
    evaluate_benchmark,
    evaluate_critical_warning,
    evaluate_environment,
    evaluate_integrity_errors,
    evaluate_kernel_log,
    evaluate_link_speed,
    evaluate_link_width,
    evaluate_self_assessment,
    evaluate_temperature,
)
from validation.models import (
    BenchmarkProfile,
    Device,
    KernelLogPattern,
    Outcome,
    RunSnapshot,
    Severity,
)
from validation.recorder import RunRecorder
from validation.report import DEFAULT_WIDTH, format_size, render_divider

ENV_MODULE = "env_check"
INVENTORY_MODULE = "inventory"
LINK_MODULE = "link_check"
READ_WRITE_MODULE = "read_write_check"
SMART_MODULE = "smart_check"
KERNEL_LOG_MODULE = "kernel_log_check"
RUN_MODULE = "run"

DEFAULT_PROFILES: tuple[BenchmarkProfile, ...] = (
    BenchmarkProfile("Seq_Read", "read", "128k", jobs=8, queue_depth=4),
    BenchmarkProfile("Seq_Write", "write", "128k", jobs=8, queue_depth=32),
    BenchmarkProfile("Rand_Read", "randread", "4k", jobs=16, queue_depth=16),
    BenchmarkProfile("Rand_Write", "randwrite", "4k", jobs=16, queue_depth=16),
)


@dataclass(frozen=True)
class OrchestratorSettings:
    """Tunables for a validation run."""

    temperature_limit_c: float = TEMPERATURE_LIMIT_C
    workers: int = 1
    benchmark_enabled: bool = True
    profiles: tuple[BenchmarkProfile, ...] = DEFAULT_PROFILES
    required_tools: tuple[str, ...] = ()
    log_dir: Path | None = None
    log_file: Path | None = None
    width: int = DEFAULT_WIDTH

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        log_dir: Path | None = None,
        log_file: Path | None = None,
    ) -> "OrchestratorSettings":
        """Build settings from a normalized configuration mapping."""

        thresholds = config.get("thresholds") or {}
        probes_cfg = config.get("probes") or {}
        benchmark_cfg = config.get("benchmark") or {}
        report_cfg = config.get("report") or {}
        profiles = tuple(
            BenchmarkProfile(
                name=str(item["name"]),
                mode=str(item["mode"]),
                block_size=str(item["block_size"]),
                jobs=int(item["jobs"]),
                queue_depth=int(item["queue_depth"]),
                duration_s=int(item.get("duration_s", 10)),
            )
            for item in benchmark_cfg.get("profiles") or []
        )
        return cls(
            temperature_limit_c=float(thresholds.get("temperature_c", TEMPERATURE_LIMIT_C)),
            workers=max(int(probes_cfg.get("workers", 1)), 1),
            benchmark_enabled=bool(benchmark_cfg.get("enabled", True)),
            profiles=profiles or DEFAULT_PROFILES,
            required_tools=tuple(str(tool) for tool in probes_cfg.get("required_tools") or ()),
            log_dir=log_dir,
            log_file=log_file,
            width=int(report_cfg.get("width", DEFAULT_WIDTH)),
        )


@dataclass(frozen=True)
class ValidationProbes:
    """Data sources consumed by the orchestrator."""

    inventory: DeviceInventory
    link: LinkProbe
    health: HealthProbe
    benchmark: BenchmarkProbe
    kernel_log: KernelLogProbe


@dataclass
class _DeviceOutcomes:
    device: Device
    outcomes: list[Outcome] = field(default_factory=list)


class CheckOrchestrator:
    """Run the ordered check pipeline and feed outcomes to a recorder.

    Pipeline: environment, inventory, link, kernel log reset, read/write
    benchmark, SMART health, kernel log scan. A failing check never stops the
    checks after it; only an empty inventory or cancellation ends a run early.
    """

    def __init__(
        self,
        recorder: RunRecorder,
        probes: ValidationProbes,
        settings: OrchestratorSettings | None = None,
        *,
        cancel_event: threading.Event | None = None,
        output: Callable[[str], None] | None = None,
        tool_lookup: Callable[[str], str | None] = find_tool,
    ) -> None:
        self._recorder = recorder
        self._probes = probes
        self._settings = settings or OrchestratorSettings()
        self._cancel_event = cancel_event or threading.Event()
        self._output = output
        self._tool_lookup = tool_lookup
        self._cancel_recorded = False
        self._kernel_log_reset = False

    def run(self) -> RunSnapshot:
        """Execute every check and return the finalized run snapshot."""

        self._run_checks()
        return self._recorder.finalize()

    def _run_checks(self) -> None:
        self._check_environment()
        if self._stop_requested():
            return

        devices = self._discover_devices()
        if devices is None:
            return

        self._check_links(devices)
        if self._stop_requested():
            return

        # clear before any benchmark I/O so the scan only sees this run's errors
        self._reset_kernel_log()
        self._check_read_write(devices)
        if self._stop_requested():
            return

        self._check_health(devices)
        if self._stop_requested():
            return

        self._check_kernel_log()

    def _record(self, module: str, outcome: Outcome) -> None:
        self._recorder.record(outcome.severity, module, outcome.message)

    def _info(self, module: str, message: str) -> None:
        self._recorder.record(Severity.INFO, module, message)

    def _fail(self, module: str, message: str) -> None:
        self._recorder.record(Severity.FAIL, module, message)

    def _divider(self) -> None:
        if self._output is not None:
            self._output(render_divider(self._settings.width))

    def _stop_requested(self) -> bool:
        if not self._cancel_event.is_set():
            return False
        if not self._cancel_recorded:
            self._cancel_recorded = True
            self._fail(RUN_MODULE, "Run cancelled; remaining checks skipped")
        return True

    def _check_environment(self) -> None:
        settings = self._settings
        dir_present = True
        file_present = True
        if settings.log_dir is not None:
            dir_present = settings.log_dir.is_dir()
            if dir_present:
                self._info(ENV_MODULE, f"Log directory: {settings.log_dir}")
        if settings.log_file is not None:
            file_present = settings.log_file.is_file()
            if file_present:
                self._info(ENV_MODULE, f"Log file: {settings.log_file.name}")
        if settings.log_dir is None and settings.log_file is None:
            self._info(ENV_MODULE, "Log file: disabled")

        for tool in settings.required_tools:
            if self._tool_lookup(tool) is None:
                self._recorder.record(Severity.WARN, ENV_MODULE, f"Required tool not found: {tool}")

        self._record(ENV_MODULE, evaluate_environment(dir_present, file_present))
        self._divider()

    def _discover_devices(self) -> list[Device] | None:
        try:
            devices = list(self._probes.inventory.list_nvme_devices())
        except Exception as exc:  # noqa: BLE001 - inventory failure ends the run cleanly
            _log_unexpected(exc, "inventory")
            self._fail(INVENTORY_MODULE, f"Device inventory unavailable: {exc}")
            return None
        if not devices:
            self._fail(INVENTORY_MODULE, "No NVMe drives detected")
            return None
        self._info(INVENTORY_MODULE, f"Drives discovered: {len(devices)}")
        return devices

    def _check_links(self, devices: list[Device]) -> None:
        self._for_each_device(LINK_MODULE, devices, self._collect_link, "Link state")

    def _collect_link(self, device: Device, outcomes: list[Outcome]) -> None:
        outcomes.append(Outcome(Severity.INFO, f"Device: {device.path} ({format_size(device.size_bytes)})"))
        outcomes.append(Outcome(Severity.INFO, f"Model: {device.model or 'N/A'}"))
        outcomes.append(Outcome(Severity.INFO, f"Serial Number: {device.serial or 'N/A'}"))
        state = self._probes.link.link_state(device)
        outcomes.append(Outcome(Severity.INFO, f"PCI Address: {state.pci_address or 'N/A'}"))
        outcomes.append(evaluate_link_width(state.current_width, state.max_width))
        outcomes.append(evaluate_link_speed(state.current_speed, state.max_speed))

    def _reset_kernel_log(self) -> None:
        if self._kernel_log_reset:
            raise RuntimeError("Kernel log buffer already reset for this run")
        self._kernel_log_reset = True
        try:
            self._probes.kernel_log.reset_buffer()
        except Exception as exc:  # noqa: BLE001 - a failed reset is recorded, not raised
            _log_unexpected(exc, "kernel log reset")
            self._fail(KERNEL_LOG_MODULE, f"Kernel log buffer reset failed: {exc}")
            return
        self._info(KERNEL_LOG_MODULE, "Kernel log buffer cleared before Read/Write validation")

    def _check_read_write(self, devices: list[Device]) -> None:
        """Benchmark every non-OS device, one device and one profile at a time."""

        if not self._settings.benchmark_enabled:
            self._info(READ_WRITE_MODULE, "Read/Write validation disabled by configuration")
            self._divider()
            return

        try:
            root_device = self._probes.inventory.root_backing_device()
            if not root_device:
                raise ProbeError("no root device reported")
        except Exception as exc:  # noqa: BLE001 - never benchmark an unknown device set
            _log_unexpected(exc, "root device resolution")
            self._fail(
                READ_WRITE_MODULE,
                f"Unable to resolve OS drive, skipping Read/Write validation: {exc}",
            )
            self._divider()
            return

        for index, device in enumerate(devices):
            if index and self._stop_requested():
                return
            if device.name == root_device:
                self._info(READ_WRITE_MODULE, f"Skipping OS drive: {device.path}")
                continue

            self._info(
                READ_WRITE_MODULE,
                f"Beginning Read/Write Validation for: {device.path} ({device.model or 'N/A'})",
            )
            for profile in self._settings.profiles:
                try:
                    result = self._probes.benchmark.run_profile(device, profile)
                except Exception as exc:  # noqa: BLE001 - one profile failure is local
                    _log_unexpected(exc, f"benchmark {profile.name}")
                    self._fail(
                        READ_WRITE_MODULE,
                        f"FIO failed during {profile.name} profile: {exc}",
                    )
                    continue
                self._record(READ_WRITE_MODULE, evaluate_benchmark(profile, result))
            self._divider()

    def _check_health(self, devices: list[Device]) -> None:
        self._for_each_device(SMART_MODULE, devices, self._collect_health, "SMART health")

    def _collect_health(self, device: Device, outcomes: list[Outcome]) -> None:
        outcomes.append(Outcome(Severity.INFO, f"Device: {device.path}"))
        outcomes.append(Outcome(Severity.INFO, f"Model: {device.model or 'N/A'}"))
        reading = self._probes.health.read_health(device)
        outcomes.append(evaluate_self_assessment(reading.self_assessment))
        outcomes.append(evaluate_critical_warning(reading.critical_warning, device.path))
        if reading.temperature_c is not None:
            outcomes.append(Outcome(Severity.INFO, f"Current Drive Temp: {reading.temperature_c}°C"))
        outcomes.append(evaluate_temperature(reading.temperature_c, self._settings.temperature_limit_c))
        outcomes.append(evaluate_integrity_errors(reading.media_errors))

    def _check_kernel_log(self) -> None:
        if not self._kernel_log_reset:
            raise RuntimeError("Kernel log scan requires a prior buffer reset")
        self._info(KERNEL_LOG_MODULE, "Scanning kernel log for NVMe-related error messages")
        for pattern in KernelLogPattern:
            try:
                count = self._probes.kernel_log.count_pattern(pattern)
            except Exception as exc:  # noqa: BLE001 - scan failure is recorded as FAIL
                _log_unexpected(exc, f"kernel log scan {pattern.name}")
                outcome = evaluate_kernel_log(pattern, None)
                self._fail(KERNEL_LOG_MODULE, f"{outcome.message}: {exc}")
                continue
            self._record(KERNEL_LOG_MODULE, evaluate_kernel_log(pattern, count))

    def _for_each_device(
        self,
        module: str,
        devices: list[Device],
        collect: Callable[[Device, list[Outcome]], None],
        label: str,
    ) -> None:
        """Collect per-device outcomes, optionally on a thread pool, and record them in device order."""

        def guarded(device: Device) -> _DeviceOutcomes:
            result = _DeviceOutcomes(device)
            try:
                collect(device, result.outcomes)
            except Exception as exc:  # noqa: BLE001 - one device failure is local
                _log_unexpected(exc, f"{module} {device.path}")
                result.outcomes.append(
                    Outcome(Severity.FAIL, f"{label} unavailable for {device.path}: {exc}")
                )
            return result

        workers = min(self._settings.workers, len(devices))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=module) as pool:
                results = list(pool.map(guarded, devices))
            for result in results:
                for outcome in result.outcomes:
                    self._record(module, outcome)
                self._divider()
            return

        for index, device in enumerate(devices):
            if index and self._stop_requested():
                return
            for outcome in guarded(device).outcomes:
                self._record(module, outcome)
            self._divider()


def _log_unexpected(exc: Exception, context: str) -> None:
    if isinstance(exc, ProbeError):
        logger.warning("Probe unavailable (%s): %s", context, exc)
    else:
        logger.exception("Unexpected probe failure (%s)", context)
