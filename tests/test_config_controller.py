"""Tests for validation config loading and normalization."""

from __future__ import annotations

from pathlib import Path

import pytest

from config.controller import ConfigController


@pytest.fixture(autouse=True)
def _reset_singleton():
    ConfigController._instance = None
    yield
    ConfigController._instance = None


def test_packaged_defaults_load() -> None:
    cfg = ConfigController.get_instance().get_config()

    assert cfg["logging_level"] == "WARNING"
    assert cfg["report"]["width"] == 120
    assert cfg["report"]["log_dir"] == "/var/tmp/hw-validation"
    assert cfg["thresholds"]["temperature_c"] == 70.0
    assert cfg["probes"]["workers"] == 1
    assert "smartctl" in cfg["probes"]["required_tools"]
    assert [p["name"] for p in cfg["benchmark"]["profiles"]] == [
        "Seq_Read",
        "Seq_Write",
        "Rand_Read",
        "Rand_Write",
    ]
    assert cfg["benchmark"]["profiles"][1]["queue_depth"] == 32


def test_override_file_deep_merges(tmp_path: Path) -> None:
    override = tmp_path / "site.yaml"
    override.write_text(
        "\n".join(
            [
                "logging_level: debug",
                "thresholds:",
                "  temperature_c: 65",
                "report:",
                "  log_dir: /srv/logs",
            ]
        ),
        encoding="utf-8",
    )

    cfg = ConfigController.get_instance(override_file=override).get_config()

    assert cfg["logging_level"] == "DEBUG"
    assert cfg["thresholds"]["temperature_c"] == 65.0
    assert cfg["report"]["log_dir"] == "/srv/logs"
    assert cfg["report"]["width"] == 120
    assert cfg["report"]["title"] == "NVMe Drive Validation"


def test_sparse_config_is_normalized(tmp_path: Path) -> None:
    (tmp_path / "default.yaml").write_text(
        "\n".join(
            [
                "probes:",
                "  workers: 0",
                "  timeout_s: '12'",
                "benchmark:",
                "  enabled: false",
                "  profiles:",
                "    - {name: Quick, mode: randread, block_size: 4k, jobs: 1, queue_depth: 1}",
            ]
        ),
        encoding="utf-8",
    )

    cfg = ConfigController(config_dir=tmp_path).get_config()

    assert cfg["probes"]["workers"] == 1
    assert cfg["probes"]["timeout_s"] == 12.0
    assert cfg["probes"]["required_tools"] == []
    assert cfg["benchmark"]["enabled"] is False
    assert cfg["benchmark"]["work_dir"] is None
    assert cfg["benchmark"]["profiles"] == [
        {
            "name": "Quick",
            "mode": "randread",
            "block_size": "4k",
            "jobs": 1,
            "queue_depth": 1,
            "duration_s": 10,
        }
    ]
    assert cfg["report"]["log_name"] == "nvme_validation"


def test_second_instance_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "default.yaml").write_text("{}\n", encoding="utf-8")
    ConfigController(config_dir=tmp_path)
    with pytest.raises(RuntimeError):
        ConfigController(config_dir=tmp_path)


def test_package_exports_controller_and_defaults_dir() -> None:
    import config

    assert config.ConfigController is ConfigController
    assert (config.PACKAGE_CONFIG_DIR / "default.yaml").is_file()
