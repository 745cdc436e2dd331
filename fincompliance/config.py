"""Risk policy configuration.

A single immutable RiskConfig controls every threshold, score and weight
used by the scoring pipeline. It is validated once when it is built (or
loaded from JSON at startup) and is never mutated while scoring.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = structlog.get_logger(__name__)

# Reference data lives next to the package, as with the other data files.
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "data" / "risk_config.json"

WEIGHT_TOLERANCE = 1e-9


class ConfigurationError(Exception):
    """Raised when the risk configuration cannot be loaded or is invalid."""


class VelocityTier(BaseModel):
    """Session count at which a velocity score applies."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(ge=1)
    score: int = Field(ge=0, le=100)


class RiskConfig(BaseModel):
    """Tunable policy for the risk-scoring pipeline."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Rules engine
    high_risk_jurisdictions: tuple[str, ...] = ("Seychelles", "BVI", "Cayman", "Panama")
    jurisdiction_score_high: int = Field(default=95, ge=0, le=100)
    jurisdiction_score_low: int = Field(default=10, ge=0, le=100)
    structuring_score: int = Field(default=85, ge=0, le=100)
    reporting_threshold: float = Field(default=1_000_000, gt=0)
    structuring_floor_ratio: float = Field(default=0.9, ge=0, le=1)

    # Velocity tiers, lowest to highest
    velocity_floor_score: int = Field(default=10, ge=0, le=100)
    velocity_medium: VelocityTier = VelocityTier(count=2, score=40)
    velocity_high: VelocityTier = VelocityTier(count=3, score=80)
    velocity_critical: VelocityTier = VelocityTier(count=5, score=95)

    # Pattern modifiers
    tunneling_min_repeats: int = Field(default=3, ge=1)
    tunneling_penalty_per_repeat: int = Field(default=5, ge=0)
    burst_window_seconds: float = Field(default=120, ge=0)
    burst_penalty: int = Field(default=10, ge=0)
    burst_same_target_penalty: int = Field(default=20, ge=0)
    fan_out_min_count: int = Field(default=4, ge=1)
    fan_out_min_beneficiaries: int = Field(default=3, ge=1)
    fan_out_penalty: int = Field(default=15, ge=0)
    linked_series_boost: int = Field(default=10, ge=0)
    linked_series_floor: int = Field(default=60, ge=0, le=100)
    high_velocity_threshold: int = Field(default=80, ge=0, le=100)

    # Flagging and classification
    high_risk_threshold: int = Field(default=45, ge=0, le=100)
    weight_rules: float = Field(default=0.30, ge=0)
    weight_velocity: float = Field(default=0.35, ge=0)
    weight_anomaly: float = Field(default=0.25, ge=0)
    weight_contextual: float = Field(default=0.10, ge=0)
    critical_cut: int = Field(default=60, ge=0, le=100)
    high_cut: int = Field(default=45, ge=0, le=100)
    medium_cut: int = Field(default=25, ge=0, le=100)

    # Inputs to the heuristic simulators
    high_value_threshold: float = Field(default=1_000_000, ge=0)
    round_amount_floor: float = Field(default=100_000, ge=0)
    round_amount_unit: float = Field(default=50_000, gt=0)
    shell_keywords: tuple[str, ...] = (
        "shell",
        "offshore",
        "holdings",
        "nominee",
        "ventures",
        "trust",
    )
    high_risk_channels: tuple[str, ...] = ("CASH", "CRYPTO")

    @model_validator(mode="after")
    def _check_policy(self) -> "RiskConfig":
        if not any(j.strip() for j in self.high_risk_jurisdictions):
            raise ValueError("high_risk_jurisdictions must not be empty")

        weight_sum = (
            self.weight_rules
            + self.weight_velocity
            + self.weight_anomaly
            + self.weight_contextual
        )
        if abs(weight_sum - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"component weights must sum to 1.0, got {weight_sum}")

        if not self.critical_cut >= self.high_cut >= self.medium_cut:
            raise ValueError("risk level cut points must satisfy critical >= high >= medium")

        tiers = self.velocity_tiers
        if not tiers[0].count < tiers[1].count < tiers[2].count:
            raise ValueError("velocity tier counts must be strictly increasing")
        return self

    @property
    def velocity_tiers(self) -> tuple[VelocityTier, VelocityTier, VelocityTier]:
        """Medium, high and critical tiers in ascending order."""
        return (self.velocity_medium, self.velocity_high, self.velocity_critical)

    @property
    def structuring_floor(self) -> float:
        return self.reporting_threshold * self.structuring_floor_ratio


def load_risk_config(path: Optional[Union[str, Path]] = None) -> RiskConfig:
    """Load the risk policy from a JSON file.

    Falls back to the built-in defaults when the file does not exist.
    Any parse or validation failure is fatal and raised as
    ConfigurationError.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.info("risk_config_defaults", path=str(config_path))
        return RiskConfig()

    try:
        with open(config_path, "r") as f:
            raw = json.load(f)
        config = RiskConfig(**raw)
    except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid risk configuration in {config_path}: {e}") from e

    logger.info(
        "risk_config_loaded",
        path=str(config_path),
        high_risk_threshold=config.high_risk_threshold,
        jurisdictions=len(config.high_risk_jurisdictions),
    )
    return config
