"""Report assembly: reasons, typology, narrative and the STR payload.

Everything here is a pure function of the transaction, the computed
signals and the score, so the deterministic narrative and XML payload are
byte-for-byte reproducible. The external narrative service may later
replace narrative and payload for flagged transactions; this module is the
fallback and the standalone path.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from fincompliance.config import RiskConfig
from fincompliance.models import RiskLevel, ScoreBreakdown, Transaction, Typology
from fincompliance.screening.contextual import find_shell_keyword
from fincompliance.screening.rules_engine import RulesResult
from fincompliance.screening.signals import RiskSignals
from fincompliance.screening.velocity import VelocityResult


def _money(amount: float, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def build_reasons(
    transaction: Transaction,
    rules: RulesResult,
    velocity: VelocityResult,
    signals: RiskSignals,
    config: RiskConfig,
) -> list[str]:
    """Human-readable reasons in fixed order.

    Jurisdiction, one velocity-pattern reason (fan-out > tunneling >
    high velocity > burst), structuring, shell keyword, high value.
    """
    reasons: list[str] = []

    if rules.is_high_risk_jurisdiction:
        reasons.append(
            f"High-risk jurisdiction: beneficiary country '{transaction.receiver_country}' "
            f"matches '{rules.matched_jurisdiction}'"
        )

    if velocity.is_fan_out:
        reasons.append(
            f"Fan-out: {velocity.session_count} transfers dispersed to "
            f"{velocity.distinct_beneficiaries} distinct beneficiaries this session"
        )
    elif velocity.is_tunneling:
        reasons.append(
            f"Tunneling: {velocity.pair_count} transfers to the same beneficiary this session"
        )
    elif velocity.is_high_velocity:
        reasons.append(f"High velocity alert ({velocity.session_count} recent txns)")
    elif velocity.is_burst:
        reasons.append("Burst activity: transfer immediately follows the previous one")

    if rules.is_structuring:
        reasons.append(
            f"Possible structuring: amount just below the reporting threshold of "
            f"{_money(config.reporting_threshold, transaction.currency)}"
        )

    keyword = find_shell_keyword(transaction.to_account, config.shell_keywords)
    if keyword:
        reasons.append(f"Beneficiary name matches shell-entity indicator '{keyword}'")

    if signals.is_high_value:
        reasons.append(
            f"High value transaction (> {_money(config.high_value_threshold, transaction.currency)})"
        )

    return reasons


def select_typology(
    transaction: Transaction,
    signals: RiskSignals,
    config: RiskConfig,
) -> Typology:
    """Dominant typology of a flagged transaction, by fixed priority."""
    has_shell = find_shell_keyword(transaction.to_account, config.shell_keywords) is not None
    if has_shell and signals.is_high_risk_jurisdiction:
        return Typology.SHELL_COMPANY
    if signals.is_fan_out:
        return Typology.DISPERSION
    if signals.is_structuring or signals.is_high_velocity:
        return Typology.STRUCTURING
    return Typology.LAYERING


# Paragraph templates keyed by typology. Placeholders are filled from the
# transaction, the score and the signal counts.
_OPENING = (
    "Transaction {tx_id} for {amount} was initiated on {channel} from account "
    "{from_account} at {location} to beneficiary {to_account} in {country}. "
    "Automated screening assigned a composite risk score of {score}/100 "
    "({level}), above the reporting threshold for suspicious activity."
)

_TYPOLOGY_PARAGRAPHS = {
    Typology.SHELL_COMPANY: (
        "The pattern is consistent with shell company operations. The beneficiary "
        "name carries shell-entity indicators and the funds are routed to a "
        "high-risk jurisdiction, which together suggest the use of a front entity "
        "to obscure beneficial ownership."
    ),
    Typology.DISPERSION: (
        "The pattern is consistent with dispersion of funds. The originating account "
        "has made {velocity_count} transfers to {distinct} distinct beneficiaries in "
        "the current session, indicative of layering through multiple mule accounts."
    ),
    Typology.STRUCTURING: (
        "The pattern is consistent with structuring/smurfing. The originating account "
        "has made {velocity_count} transaction(s) in the current session, with amounts "
        "and frequency suggesting deliberate splitting to stay below the mandatory "
        "reporting threshold."
    ),
    Typology.LAYERING: (
        "The pattern is consistent with layering/round-tripping. The movement of funds "
        "through the stated channel and jurisdiction appears designed to distance the "
        "funds from their origin."
    ),
}

_CLOSING = (
    "Grounds of suspicion: {indicators}. The transaction is referred for filing of "
    "a Suspicious Transaction Report with the Financial Intelligence Unit."
)

_ROUTINE = (
    "Transaction {tx_id} for {amount} from account {from_account} to {to_account} "
    "({country}) was screened with a composite risk score of {score}/100 ({level}). "
    "No indicators warranting a Suspicious Transaction Report were identified; "
    "the activity is consistent with routine commercial transactions."
)


def render_narrative(
    transaction: Transaction,
    typology: Typology,
    score: int,
    risk_level: RiskLevel,
    reasons: list[str],
    velocity: VelocityResult,
) -> str:
    """Deterministic narrative; a routine statement for non-flagged transactions."""
    fields = {
        "tx_id": transaction.id,
        "amount": _money(transaction.amount, transaction.currency),
        "channel": transaction.type,
        "from_account": transaction.from_account,
        "to_account": transaction.to_account,
        "location": transaction.location or "an unspecified location",
        "country": transaction.receiver_country,
        "score": score,
        "level": risk_level.value,
        "velocity_count": velocity.session_count,
        "distinct": velocity.distinct_beneficiaries,
        "indicators": "; ".join(reasons) if reasons else "composite score above threshold",
    }

    if typology == Typology.ROUTINE:
        return _ROUTINE.format(**fields)

    paragraphs = [
        _OPENING.format(**fields),
        _TYPOLOGY_PARAGRAPHS[typology].format(**fields),
        _CLOSING.format(**fields),
    ]
    return "\n\n".join(paragraphs)


def render_xml_payload(
    report_id: str,
    transaction: Transaction,
    breakdown: ScoreBreakdown,
    score: int,
    risk_level: RiskLevel,
    typology: Typology,
    reasons: list[str],
    velocity_count: int,
    is_filed: bool,
) -> str:
    """Structured STR payload for downstream filing systems."""
    root = ET.Element("STR", {"reportId": report_id, "filed": str(is_filed).lower()})

    tx = ET.SubElement(root, "Transaction", {"id": transaction.id})
    ET.SubElement(tx, "Amount", {"currency": transaction.currency}).text = f"{transaction.amount:.2f}"
    ET.SubElement(tx, "FromAccount").text = transaction.from_account
    ET.SubElement(tx, "ToAccount").text = transaction.to_account
    ET.SubElement(tx, "ReceiverCountry").text = transaction.receiver_country
    ET.SubElement(tx, "Type").text = transaction.type
    ET.SubElement(tx, "Location").text = transaction.location
    if transaction.timestamp is not None:
        ET.SubElement(tx, "Timestamp").text = transaction.timestamp.isoformat()

    risk = ET.SubElement(
        root,
        "RiskAssessment",
        {"score": str(score), "level": risk_level.value, "typology": typology.value},
    )
    ET.SubElement(
        risk,
        "Breakdown",
        {
            "rules": str(breakdown.rules),
            "velocity": str(breakdown.velocity),
            "anomaly": str(breakdown.anomaly),
            "contextual": str(breakdown.contextual),
        },
    )
    ET.SubElement(risk, "VelocityCount").text = str(velocity_count)

    indicators = ET.SubElement(root, "Indicators")
    for reason in reasons:
        ET.SubElement(indicators, "Indicator").text = reason

    return ET.tostring(root, encoding="unicode")


def build_explanation(breakdown: ScoreBreakdown, typology: Optional[Typology] = None) -> str:
    """One-line summary of where the composite score came from."""
    text = (
        f"Rules {breakdown.rules}/100, velocity {breakdown.velocity}/100, "
        f"anomaly model {breakdown.anomaly}/100, contextual model {breakdown.contextual}/100."
    )
    if typology is not None and typology != Typology.ROUTINE:
        text += f" Dominant typology: {typology.value}."
    return text
