"""Jurisdiction risk rule.

Checks whether the beneficiary country names a high-risk jurisdiction.
High-risk jurisdictions are typically offshore financial centres and
secrecy havens (Seychelles, BVI, Cayman, ...) commonly used for layering.
Matching is a case-insensitive substring test, so "Cayman Islands" and
"BVI (British Virgin Islands)" both match their keywords.
"""

from typing import Iterable, Optional


def match_jurisdiction(
    receiver_country: str,
    high_risk_jurisdictions: Iterable[str],
) -> Optional[str]:
    """Return the first configured keyword found in the country, if any."""
    country = receiver_country.strip().lower()

    for keyword in high_risk_jurisdictions:
        needle = keyword.strip().lower()
        if needle and needle in country:
            return keyword

    return None
