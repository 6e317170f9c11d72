"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import DEFAULT_PRECISION

logger = logging.getLogger(__name__)

# Below the stdlib default the sentinel borrow weight loses digits.
MIN_PRECISION = 28

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThresholdsConfig:
    utilization_warning: Decimal = Decimal("0.80")
    utilization_critical: Decimal = Decimal("0.95")


@dataclass(frozen=True)
class CalculatorConfig:
    precision: int = DEFAULT_PRECISION


@dataclass(frozen=True)
class SnapshotsConfig:
    path: str = ""


@dataclass(frozen=True)
class AppConfig:
    calculator: CalculatorConfig = field(default_factory=CalculatorConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    snapshots: SnapshotsConfig = field(default_factory=SnapshotsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_thresholds(raw: dict[str, Any]) -> ThresholdsConfig:
    return ThresholdsConfig(
        utilization_warning=Decimal(str(raw.get("utilization_warning", "0.80"))),
        utilization_critical=Decimal(str(raw.get("utilization_critical", "0.95"))),
    )


def _build_calculator(raw: dict[str, Any]) -> CalculatorConfig:
    return CalculatorConfig(
        precision=int(raw.get("precision", DEFAULT_PRECISION)),
    )


def _build_snapshots(raw: dict[str, Any]) -> SnapshotsConfig:
    return SnapshotsConfig(path=str(raw.get("path") or ""))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        calculator=_build_calculator(raw.get("calculator") or {}),
        thresholds=_build_thresholds(raw.get("thresholds") or {}),
        snapshots=_build_snapshots(raw.get("snapshots") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.calculator.precision < MIN_PRECISION:
        raise ValueError(
            f"Calculator precision must be at least {MIN_PRECISION}, "
            f"got {cfg.calculator.precision}"
        )

    warning = cfg.thresholds.utilization_warning
    critical = cfg.thresholds.utilization_critical
    for name, value in (("utilization_warning", warning), ("utilization_critical", critical)):
        if not Decimal(0) < value <= Decimal(1):
            raise ValueError(f"Threshold '{name}' must be in (0, 1], got {value}")
    if warning >= critical:
        raise ValueError(
            f"utilization_warning ({warning}) must be below utilization_critical ({critical})"
        )
