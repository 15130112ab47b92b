"""Metrics engine configuration and environment setup."""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

type ConfigDict = dict[str, str | int | float | bool | list[str]]


@dataclass(frozen=True)
class ScoreBands:
    excellent: float = 20.0
    good: float = 35.0
    average: float = 50.0


@dataclass(frozen=True)
class MetricsConfig:
    repeat_window_hours: float
    override_roles: frozenset[str]
    default_shift_minutes: int
    score_bands: ScoreBands = field(default_factory=ScoreBands)


def load_metrics_config(
    env: str = "production",
    overrides: ConfigDict | None = None,
) -> MetricsConfig:
    match env:
        case "production" | "staging":
            config = MetricsConfig(
                repeat_window_hours=24,
                override_roles=frozenset({"admin", "super_admin", "production"}),
                default_shift_minutes=690,
            )
        case "development":
            config = MetricsConfig(
                repeat_window_hours=24,
                override_roles=frozenset({"admin", "super_admin", "production", "quality"}),
                default_shift_minutes=690,
            )
        case other:
            raise ValueError(f"Unknown environment: {other}")

    if overrides:
        config = _apply_overrides(config, overrides)
    return config


def _apply_overrides(config: MetricsConfig, overrides: ConfigDict) -> MetricsConfig:
    changes = {}
    for key, value in overrides.items():
        match key:
            case "repeat_window_hours":
                changes[key] = float(value)
            case "default_shift_minutes":
                changes[key] = int(value)
            case "override_roles":
                changes[key] = frozenset(value)
            case "score_bands":
                changes[key] = ScoreBands(**value)
            case unknown:
                raise ValueError(f"Unknown config key: {unknown}")
    return replace(config, **changes)


def get_env_config(pyproject: Path | None = None) -> ConfigDict:
    """Read engine config overrides from pyproject.toml."""
    pyproject = pyproject or Path(__file__).parent.parent / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("opsmetrics", {})
