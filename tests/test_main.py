"""Tests for the command-line entry point."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from config.controller import ConfigController
from core.logging import disable_file_logging, enable_file_logging
import main as cli
from validation.orchestrator import CheckOrchestrator, OrchestratorSettings


@pytest.fixture(autouse=True)
def _reset_singleton():
    ConfigController._instance = None
    yield
    ConfigController._instance = None


def test_prepare_log_file_names_and_creates(tmp_path: Path) -> None:
    log_dir = tmp_path / "hw-validation"
    path = cli.prepare_log_file(log_dir, "nvme_validation", now=datetime(2026, 3, 4, 5, 6, 7))

    assert path == log_dir / "nvme_validation_03-04-26_05:06:07.log"
    assert path.is_file()
    assert path.read_text(encoding="utf-8") == ""


def test_prepare_log_file_reports_unwritable_dir(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(cli.EnvironmentSetupError):
        cli.prepare_log_file(blocker / "logs", "nvme_validation")


def test_offline_run_passes_and_writes_log(tmp_path: Path) -> None:
    code = cli.main(["--offline", "--log-dir", str(tmp_path)])

    assert code == cli.EXIT_PASS
    logs = list(tmp_path.glob("nvme_validation_*.log"))
    assert len(logs) == 1
    text = logs[0].read_text(encoding="utf-8")
    assert "NVMe Drive Validation" in text
    assert "Product         : Offline Validation Host" in text
    assert "Seq_Read Result" in text
    assert "[PASS]" in text
    assert "[read_write_check] Skipping OS drive: /dev/nvme0n1" in text
    assert "Result          : PASS" in text
    assert f"Log Location    : {logs[0]}" in text


def test_offline_run_without_benchmark(tmp_path: Path) -> None:
    code = cli.main(["--offline", "--skip-benchmark", "--workers", "2", "--log-dir", str(tmp_path)])

    assert code == cli.EXIT_PASS
    text = next(tmp_path.glob("*.log")).read_text(encoding="utf-8")
    assert "Read/Write validation disabled by configuration" in text
    assert "Seq_Read Result" not in text


def test_unwritable_log_dir_is_environment_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    code = cli.main(["--offline", "--log-dir", str(blocker / "logs")])

    assert code == cli.EXIT_ENVIRONMENT


def test_live_run_requires_root(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("main.os.geteuid", lambda: 1000, raising=False)

    code = cli.main(["--log-dir", str(tmp_path)])

    assert code == cli.EXIT_ENVIRONMENT
    assert not list(tmp_path.glob("*.log"))


def test_bad_override_is_environment_error(tmp_path: Path) -> None:
    override = tmp_path / "broken.yaml"
    override.write_text("benchmark:\n  profiles:\n    - {name: Quick}\n", encoding="utf-8")

    code = cli.main(["--offline", "--config", str(override), "--log-dir", str(tmp_path)])

    assert code == cli.EXIT_ENVIRONMENT


class _BrokenEnvironment:
    def identity(self):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")


def _run_logged(tmp_path: Path, probes, environment) -> tuple[int, str]:
    log_path = tmp_path / "run.log"
    enable_file_logging(log_path)
    try:
        code = cli.run_validation(
            probes,
            environment,
            OrchestratorSettings(),
            title="NVMe Drive Validation",
            log_path=log_path,
        )
    finally:
        disable_file_logging()
    return code, log_path.read_text(encoding="utf-8")


def test_unreadable_identity_still_runs_every_check(tmp_path: Path) -> None:
    probes, _ = cli.build_offline_probes()

    code, text = _run_logged(tmp_path, probes, _BrokenEnvironment())

    assert code == cli.EXIT_PASS
    assert "Product         : N/A" in text
    assert "Seq_Read Result" in text
    assert "Result          : PASS" in text


def test_crashed_run_still_writes_summary(tmp_path: Path, monkeypatch) -> None:
    def explode(self, devices):
        raise RuntimeError("worker pool died")

    monkeypatch.setattr(CheckOrchestrator, "_check_health", explode)
    probes, environment = cli.build_offline_probes()

    code, text = _run_logged(tmp_path, probes, environment)

    assert code == cli.EXIT_FAIL
    assert "[FAIL]" in text and "[run] Validation aborted: worker pool died" in text
    assert text.count("SUMMARY") == 1
    assert "Result          : FAIL" in text
