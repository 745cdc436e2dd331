"""Velocity and pattern detection.

Scores how a sender's session behaviour looks for the incoming
transaction, using only the account's running history entry:

  1. Session count      -- prior count + 1 (or an explicit override)
  2. Base tier score    -- highest velocity tier reached, floor otherwise
  3. Tunneling          -- same (sender, beneficiary) pair recurring 3+ times;
                           penalty grows with the repeat count
  4. Burst              -- previous transfer within the burst window, or simply
                           the previous transfer when a timestamp is missing;
                           larger penalty when it went to the same beneficiary
  5. Fan-out            -- many transfers dispersed to many distinct beneficiaries
  6. Linked series      -- pair seen before this session; boost plus a floor

The score is clamped to [0, 100]. The history entry is read, never written.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from fincompliance.config import RiskConfig
from fincompliance.models import Transaction
from fincompliance.storage.history import AccountHistoryEntry


class VelocityResult(BaseModel):
    """Velocity score and the pattern signals behind it."""
    model_config = ConfigDict(frozen=True)

    score: int
    session_count: int
    pair_count: int
    distinct_beneficiaries: int
    is_high_velocity: bool
    is_tunneling: bool
    is_burst: bool
    is_burst_same_target: bool
    is_fan_out: bool
    is_linked_series: bool


def base_velocity_score(session_count: int, config: RiskConfig) -> int:
    """Tiered step function over the session count."""
    score = config.velocity_floor_score
    for tier in config.velocity_tiers:
        if session_count >= tier.count:
            score = max(score, tier.score)
    return score


def _is_burst(transaction: Transaction, entry: AccountHistoryEntry, config: RiskConfig) -> bool:
    if entry.count == 0:
        return False
    if transaction.timestamp is None or entry.last_timestamp is None:
        # No clock available: adjacency alone counts
        return True
    try:
        gap = (transaction.timestamp - entry.last_timestamp).total_seconds()
    except TypeError:
        # Naive vs. aware timestamps cannot be compared; treat as unavailable
        return True
    return 0 <= gap <= config.burst_window_seconds


def detect_velocity(
    transaction: Transaction,
    entry: AccountHistoryEntry,
    config: RiskConfig,
    session_count: Optional[int] = None,
) -> VelocityResult:
    """Compute the velocity score for `transaction` given the sender's history."""
    count = session_count if session_count is not None else entry.count + 1
    beneficiary = transaction.to_account.strip()

    score = base_velocity_score(count, config)

    pair_count = entry.pair_count(beneficiary) + 1
    is_tunneling = pair_count >= config.tunneling_min_repeats
    if is_tunneling:
        score += config.tunneling_penalty_per_repeat * pair_count

    is_burst = _is_burst(transaction, entry, config)
    is_burst_same_target = is_burst and entry.last_beneficiary == beneficiary
    if is_burst_same_target:
        score += config.burst_same_target_penalty
    elif is_burst:
        score += config.burst_penalty

    distinct = len(entry.beneficiaries | {beneficiary})
    is_fan_out = (
        count >= config.fan_out_min_count
        and distinct >= config.fan_out_min_beneficiaries
    )
    if is_fan_out:
        score += config.fan_out_penalty

    is_linked_series = pair_count >= 2
    if is_linked_series:
        score = max(score + config.linked_series_boost, config.linked_series_floor)

    score = max(0, min(score, 100))

    return VelocityResult(
        score=score,
        session_count=count,
        pair_count=pair_count,
        distinct_beneficiaries=distinct,
        is_high_velocity=score >= config.high_velocity_threshold,
        is_tunneling=is_tunneling,
        is_burst=is_burst,
        is_burst_same_target=is_burst_same_target,
        is_fan_out=is_fan_out,
        is_linked_series=is_linked_series,
    )
