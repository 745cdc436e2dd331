"""Signals shared between the rule/velocity stage and the score models.

The anomaly and contextual scores are computed from a RiskSignals value
only, never from stores or history. Anything implementing ScoreModel can
stand in for the heuristic simulators (e.g. a trained model wrapper).
"""

from typing import Protocol

from pydantic import BaseModel, ConfigDict

from fincompliance.config import RiskConfig
from fincompliance.models import Transaction
from fincompliance.screening.rules_engine import RulesResult
from fincompliance.screening.velocity import VelocityResult


class RiskSignals(BaseModel):
    """Boolean and numeric facts derived for one transaction."""
    model_config = ConfigDict(frozen=True)

    amount: float
    channel: str
    beneficiary: str
    velocity_count: int

    is_high_risk_jurisdiction: bool
    is_structuring: bool
    is_high_value: bool
    is_round_amount: bool
    is_high_velocity: bool
    is_tunneling: bool
    is_burst: bool
    is_fan_out: bool
    is_linked_series: bool


class ScoreModel(Protocol):
    """A component score producer: signals in, 0-100 score out."""

    def score(self, signals: RiskSignals) -> int:
        ...


def is_round_amount(amount: float, config: RiskConfig) -> bool:
    """Suspiciously round: at or above the floor and a whole multiple of the unit."""
    return amount >= config.round_amount_floor and amount % config.round_amount_unit == 0


def build_signals(
    transaction: Transaction,
    rules: RulesResult,
    velocity: VelocityResult,
    config: RiskConfig,
) -> RiskSignals:
    return RiskSignals(
        amount=transaction.amount,
        channel=transaction.type,
        beneficiary=transaction.to_account,
        velocity_count=velocity.session_count,
        is_high_risk_jurisdiction=rules.is_high_risk_jurisdiction,
        is_structuring=rules.is_structuring,
        is_high_value=transaction.amount > config.high_value_threshold,
        is_round_amount=is_round_amount(transaction.amount, config),
        is_high_velocity=velocity.is_high_velocity,
        is_tunneling=velocity.is_tunneling,
        is_burst=velocity.is_burst,
        is_fan_out=velocity.is_fan_out,
        is_linked_series=velocity.is_linked_series,
    )
