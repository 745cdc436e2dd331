"""Pydantic models for the transaction risk-scoring pipeline."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionStatus(str, Enum):
    PENDING = "Pending"
    PROCESSED = "Processed"
    FLAGGED = "Flagged"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Typology(str, Enum):
    """Money-laundering typology a flagged transaction resembles."""
    SHELL_COMPANY = "Shell Company Operations"
    DISPERSION = "Dispersion"
    STRUCTURING = "Structuring/Smurfing"
    LAYERING = "Layering/Round-Tripping"
    ROUTINE = "Routine"


class TransactionRequest(BaseModel):
    """Incoming transaction record from the feed, before an id is assigned."""
    amount: float = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    from_account: str
    to_account: str
    receiver_country: str
    type: str  # Channel: NEFT, RTGS, IMPS, WIRE, CASH, CRYPTO, ...
    location: str = ""
    timestamp: Optional[datetime] = None  # None disables time-based burst checks

    @field_validator("from_account", "to_account", "receiver_country", "type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("currency", "type")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()


class Transaction(TransactionRequest):
    """An ingested transaction. Immutable; the final status is set on a copy."""
    model_config = ConfigDict(frozen=True)

    id: str
    status: TransactionStatus = TransactionStatus.PENDING


class ScoreBreakdown(BaseModel):
    """Independent component scores, each 0-100."""
    model_config = ConfigDict(frozen=True)

    rules: int = Field(ge=0, le=100)
    velocity: int = Field(ge=0, le=100)
    anomaly: int = Field(ge=0, le=100)
    contextual: int = Field(ge=0, le=100)


class RiskScore(BaseModel):
    """Result of scoring a single transaction."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    score: int = Field(ge=0, le=100)  # Weighted composite, half-up rounded
    risk_level: RiskLevel
    is_high_risk: bool  # score >= high_risk_threshold
    reasons: list[str]
    velocity_count: int
    breakdown: ScoreBreakdown
    explanation: str
    typology: Typology


class SuspiciousActivityReport(BaseModel):
    """STR draft for a transaction. Filed only when the transaction is high risk."""
    model_config = ConfigDict(frozen=True)

    id: str
    transaction_id: str
    narrative: str
    xml_payload: str
    generated_at: datetime
    is_filed: bool
    narrative_source: Literal["deterministic", "service"] = "deterministic"


class ScreeningOutcome(BaseModel):
    """Everything the pipeline produces for one transaction."""
    transaction: Transaction
    risk_score: RiskScore
    report: SuspiciousActivityReport


class NarrativeResult(BaseModel):
    """Response body expected from the external narrative service."""
    narrative: str = Field(min_length=1)
    xml: str = Field(min_length=1)


class BatchRequest(BaseModel):
    """An ordered batch of transactions to screen."""
    transactions: list[TransactionRequest]


class BatchSummary(BaseModel):
    """Aggregate statistics for a batch screening run."""
    total: int
    flagged: int
    processed: int
    risk_levels: dict[str, int]
    common_risk_factors: list[str]


class BatchResponse(BaseModel):
    """Result of screening a batch of transactions."""
    results: list[ScreeningOutcome]
    summary: BatchSummary


class AuditEntry(BaseModel):
    """Audit trail entry linking an ingested transaction to its outcome."""
    transaction_id: str
    timestamp: datetime
    transaction: Transaction
    risk_score: int
    risk_level: RiskLevel
    reasons: list[str]
    is_filed: bool
