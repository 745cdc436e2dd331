"""Rules engine: jurisdiction and structuring checks.

Produces the rules component score:
  - High-risk jurisdiction -> jurisdiction_score_high
  - Otherwise structuring  -> structuring_score
  - Otherwise              -> jurisdiction_score_low

Jurisdiction takes precedence when both apply. The engine is a pure
function of (transaction, config).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from fincompliance.config import RiskConfig
from fincompliance.models import Transaction
from fincompliance.screening.rules.jurisdiction import match_jurisdiction
from fincompliance.screening.rules.structuring import check_structuring


class RulesResult(BaseModel):
    """Output of the rules engine for one transaction."""
    model_config = ConfigDict(frozen=True)

    score: int
    is_high_risk_jurisdiction: bool
    is_structuring: bool
    matched_jurisdiction: Optional[str] = None


def evaluate_rules(transaction: Transaction, config: RiskConfig) -> RulesResult:
    matched = match_jurisdiction(
        transaction.receiver_country,
        config.high_risk_jurisdictions,
    )
    is_structuring = check_structuring(
        amount=transaction.amount,
        reporting_threshold=config.reporting_threshold,
        floor_ratio=config.structuring_floor_ratio,
    )

    if matched is not None:
        score = config.jurisdiction_score_high
    elif is_structuring:
        # Structuring only ever raises the score
        score = max(config.structuring_score, config.jurisdiction_score_low)
    else:
        score = config.jurisdiction_score_low

    return RulesResult(
        score=score,
        is_high_risk_jurisdiction=matched is not None,
        is_structuring=is_structuring,
        matched_jurisdiction=matched,
    )
