"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


class ConfigController:
    """Singleton controller for loading validation configuration."""

    _instance: "ConfigController | None" = None

    def __init__(
        self,
        config_file: str | Path = "default.yaml",
        override_file: str | Path | None = None,
        config_dir: Path | None = None,
    ) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = Path(config_dir) if config_dir is not None else PACKAGE_CONFIG_DIR
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            override_file=Path(override_file) if override_file else config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()
        ConfigController._instance = self

    @classmethod
    def get_instance(cls, override_file: str | Path | None = None) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls(override_file=override_file)
        return cls._instance

    def load_config(self) -> None:
        """Load configuration from default and override YAML files."""

        with self.paths.config_file.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}

        if self.paths.override_file.exists():
            with self.paths.override_file.open("r", encoding="utf-8") as file:
                override_config = yaml.safe_load(file) or {}
            if override_config:
                config = self._deep_merge(config, override_config)

        self.config = self._normalize_config(config)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _normalize_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Coerce value types and fill defaults for every section the run reads."""

        normalized = dict(config)
        normalized["logging_level"] = str(normalized.get("logging_level", "WARNING")).upper()

        report_cfg = dict(normalized.get("report") or {})
        report_cfg["title"] = str(report_cfg.get("title", "NVMe Drive Validation"))
        report_cfg["width"] = int(report_cfg.get("width", 120))
        report_cfg["log_dir"] = str(report_cfg.get("log_dir", "/var/tmp/hw-validation"))
        report_cfg["log_name"] = str(report_cfg.get("log_name", "nvme_validation"))
        normalized["report"] = report_cfg

        thresholds_cfg = dict(normalized.get("thresholds") or {})
        thresholds_cfg["temperature_c"] = float(thresholds_cfg.get("temperature_c", 70))
        normalized["thresholds"] = thresholds_cfg

        probes_cfg = dict(normalized.get("probes") or {})
        probes_cfg["timeout_s"] = float(probes_cfg.get("timeout_s", 30.0))
        probes_cfg["workers"] = max(int(probes_cfg.get("workers", 1)), 1)
        probes_cfg["required_tools"] = [
            str(tool) for tool in (probes_cfg.get("required_tools") or [])
        ]
        normalized["probes"] = probes_cfg

        benchmark_cfg = dict(normalized.get("benchmark") or {})
        benchmark_cfg["enabled"] = bool(benchmark_cfg.get("enabled", True))
        benchmark_cfg["size"] = str(benchmark_cfg.get("size", "10G"))
        benchmark_cfg["grace_s"] = float(benchmark_cfg.get("grace_s", 30.0))
        work_dir = benchmark_cfg.get("work_dir")
        benchmark_cfg["work_dir"] = str(work_dir) if work_dir else None
        benchmark_cfg["profiles"] = [
            {
                "name": str(profile["name"]),
                "mode": str(profile["mode"]),
                "block_size": str(profile["block_size"]),
                "jobs": int(profile["jobs"]),
                "queue_depth": int(profile["queue_depth"]),
                "duration_s": int(profile.get("duration_s", 10)),
            }
            for profile in (benchmark_cfg.get("profiles") or [])
        ]
        normalized["benchmark"] = benchmark_cfg
        return normalized
