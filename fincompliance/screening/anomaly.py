"""Heuristic stand-in for a trained anomaly-detection model.

Additive and deterministic: a baseline plus fixed increments for each
signal. High velocity is the largest single contributor. The result is
capped at 99; 100 is left for a real model's absolute certainty.
"""

from fincompliance.screening.signals import RiskSignals

BASELINE = 15
HIGH_VALUE = 20
ROUND_AMOUNT = 10
HIGH_VELOCITY = 60
HIGH_RISK_JURISDICTION = 25
LINKED_SERIES = 20
MAX_SCORE = 99


class HeuristicAnomalyModel:
    """Rule-simulated anomaly score."""

    def score(self, signals: RiskSignals) -> int:
        score = BASELINE
        if signals.is_high_value:
            score += HIGH_VALUE
        if signals.is_round_amount:
            score += ROUND_AMOUNT
        if signals.is_high_velocity:
            score += HIGH_VELOCITY
        if signals.is_high_risk_jurisdiction:
            score += HIGH_RISK_JURISDICTION
        if signals.is_linked_series or signals.is_tunneling:
            score += LINKED_SERIES
        return min(score, MAX_SCORE)
