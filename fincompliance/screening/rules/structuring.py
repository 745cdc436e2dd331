"""Structuring detection rule.

Identifies single transfers sized just under the mandatory reporting
amount, the classic footprint of splitting a large transfer to evade
reporting (e.g. a 9.5 lakh transfer against a 10 lakh threshold).

A transfer is flagged when it falls in [floor, threshold), where the floor
is a fixed fraction (90% by default) of the reporting threshold.
"""


def check_structuring(
    amount: float,
    reporting_threshold: float = 1_000_000,
    floor_ratio: float = 0.9,
) -> bool:
    """True if the amount sits inside the sub-threshold structuring band."""
    floor = reporting_threshold * floor_ratio
    return floor <= amount < reporting_threshold
