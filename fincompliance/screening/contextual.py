"""Heuristic stand-in for a trained contextual (narrative) risk model.

Looks at what the transaction *says* rather than how often it happens:
where the money goes, who receives it, and through which channel.
"""

from typing import Iterable, Optional

from fincompliance.screening.signals import RiskSignals

BASELINE = 10
HIGH_RISK_JURISDICTION = 45
SHELL_KEYWORD = 25
STRUCTURING = 20
MACHINE_LIKE = 15  # high velocity and a round amount together
HIGH_RISK_CHANNEL = 10
MAX_SCORE = 99


def find_shell_keyword(beneficiary: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first shell-entity indicator word in the beneficiary name."""
    name = beneficiary.lower()
    for keyword in keywords:
        needle = keyword.strip().lower()
        if needle and needle in name:
            return keyword
    return None


class HeuristicContextualModel:
    """Rule-simulated contextual risk score."""

    def __init__(
        self,
        shell_keywords: Iterable[str] = (),
        high_risk_channels: Iterable[str] = (),
    ) -> None:
        self.shell_keywords = tuple(shell_keywords)
        self.high_risk_channels = {c.strip().upper() for c in high_risk_channels}

    def score(self, signals: RiskSignals) -> int:
        score = BASELINE
        if signals.is_high_risk_jurisdiction:
            score += HIGH_RISK_JURISDICTION
        if find_shell_keyword(signals.beneficiary, self.shell_keywords):
            score += SHELL_KEYWORD
        if signals.is_structuring:
            score += STRUCTURING
        if signals.is_high_velocity and signals.is_round_amount:
            score += MACHINE_LIKE
        if signals.channel.upper() in self.high_risk_channels:
            score += HIGH_RISK_CHANNEL
        return min(score, MAX_SCORE)
