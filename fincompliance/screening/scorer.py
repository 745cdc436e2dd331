"""Score aggregation and risk-level classification.

The composite is DETERMINISTIC: same breakdown + same config = same score.
  - total = round-half-up(rules*w_r + velocity*w_v + anomaly*w_a + contextual*w_c)
  - level: Critical >= critical_cut, High >= high_cut, Medium >= medium_cut, else Low
    (a score equal to a cut point belongs to the higher band)
  - flagged when total >= high_risk_threshold, independent of the level cuts

The weighted sum is computed in decimal arithmetic so that a total such as
52.5 rounds to 53 regardless of binary floating-point error in the weights.
"""

from decimal import ROUND_HALF_UP, Decimal

from fincompliance.config import RiskConfig
from fincompliance.models import RiskLevel, ScoreBreakdown


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, .5 going up (no banker's rounding)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def aggregate_score(breakdown: ScoreBreakdown, config: RiskConfig) -> int:
    """Weighted combination of the four component scores, 0-100."""
    components = [
        (breakdown.rules, config.weight_rules),
        (breakdown.velocity, config.weight_velocity),
        (breakdown.anomaly, config.weight_anomaly),
        (breakdown.contextual, config.weight_contextual),
    ]
    total = sum(
        (Decimal(score) * Decimal(str(weight)) for score, weight in components),
        Decimal(0),
    )
    return max(0, min(round_half_up(total), 100))


def classify_risk_level(score: int, config: RiskConfig) -> RiskLevel:
    if score >= config.critical_cut:
        return RiskLevel.CRITICAL
    if score >= config.high_cut:
        return RiskLevel.HIGH
    if score >= config.medium_cut:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def is_high_risk(score: int, config: RiskConfig) -> bool:
    """Flagging/filing decision."""
    return score >= config.high_risk_threshold
