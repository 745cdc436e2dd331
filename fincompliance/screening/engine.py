"""Core screening orchestrator.

Runs every stage for a transaction in order:
  1. Rules engine (jurisdiction, structuring)
  2. Velocity & pattern detection against the sender's history snapshot
  3. Anomaly and contextual score models over the resulting signals
  4. Weighted aggregation and risk-level classification
  5. Report assembly (reasons, typology, narrative, XML payload)

Then commits the transaction to the sender's history, so the next
transaction from the same sender (even in the same batch) sees it, and
stores the outcome. History is committed only after the score is final.

Batches keep strict arrival order per sender. Different senders have no
ordering dependency, so with max_workers > 1 a batch is partitioned by
sender and each partition is owned by a single worker thread.
"""

import asyncio
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from fincompliance.config import RiskConfig
from fincompliance.models import (
    RiskScore,
    ScoreBreakdown,
    ScreeningOutcome,
    SuspiciousActivityReport,
    Transaction,
    TransactionStatus,
    Typology,
)
from fincompliance.narrative.client import NarrativeClient
from fincompliance.screening.anomaly import HeuristicAnomalyModel
from fincompliance.screening.contextual import HeuristicContextualModel
from fincompliance.screening.report import (
    build_explanation,
    build_reasons,
    render_narrative,
    render_xml_payload,
    select_typology,
)
from fincompliance.screening.rules_engine import evaluate_rules
from fincompliance.screening.scorer import aggregate_score, classify_risk_level, is_high_risk
from fincompliance.screening.signals import ScoreModel, build_signals
from fincompliance.screening.velocity import detect_velocity
from fincompliance.storage.history import AccountHistoryEntry, AccountHistoryStore
from fincompliance.storage.memory import DuplicateTransactionError, ResultStore

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScreeningEngine:
    """Orchestrates transaction risk scoring and report generation."""

    def __init__(
        self,
        config: RiskConfig,
        history: AccountHistoryStore,
        store: ResultStore,
        anomaly_model: Optional[ScoreModel] = None,
        contextual_model: Optional[ScoreModel] = None,
        narrative_client: Optional[NarrativeClient] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.history = history
        self.store = store
        self.anomaly_model = anomaly_model or HeuristicAnomalyModel()
        self.contextual_model = contextual_model or HeuristicContextualModel(
            shell_keywords=config.shell_keywords,
            high_risk_channels=config.high_risk_channels,
        )
        self.narrative_client = narrative_client
        self.clock = clock

    def evaluate(
        self,
        transaction: Transaction,
        entry: AccountHistoryEntry,
        session_count: Optional[int] = None,
    ) -> ScreeningOutcome:
        """Score one transaction against a history snapshot.

        Pure: neither the history nor the result store is touched. The
        returned transaction carries its final status.
        """
        config = self.config

        rules = evaluate_rules(transaction, config)
        velocity = detect_velocity(transaction, entry, config, session_count=session_count)
        signals = build_signals(transaction, rules, velocity, config)

        breakdown = ScoreBreakdown(
            rules=rules.score,
            velocity=velocity.score,
            anomaly=self.anomaly_model.score(signals),
            contextual=self.contextual_model.score(signals),
        )
        score = aggregate_score(breakdown, config)
        risk_level = classify_risk_level(score, config)
        flagged = is_high_risk(score, config)

        reasons = build_reasons(transaction, rules, velocity, signals, config)
        typology = select_typology(transaction, signals, config) if flagged else Typology.ROUTINE

        risk_score = RiskScore(
            transaction_id=transaction.id,
            score=score,
            risk_level=risk_level,
            is_high_risk=flagged,
            reasons=reasons,
            velocity_count=velocity.session_count,
            breakdown=breakdown,
            explanation=build_explanation(breakdown, typology),
            typology=typology,
        )

        report_id = f"STR-{transaction.id}"
        report = SuspiciousActivityReport(
            id=report_id,
            transaction_id=transaction.id,
            narrative=render_narrative(
                transaction, typology, score, risk_level, reasons, velocity
            ),
            xml_payload=render_xml_payload(
                report_id=report_id,
                transaction=transaction,
                breakdown=breakdown,
                score=score,
                risk_level=risk_level,
                typology=typology,
                reasons=reasons,
                velocity_count=velocity.session_count,
                is_filed=flagged,
            ),
            generated_at=self.clock(),
            is_filed=flagged,
        )

        status = TransactionStatus.FLAGGED if flagged else TransactionStatus.PROCESSED
        return ScreeningOutcome(
            transaction=transaction.model_copy(update={"status": status}),
            risk_score=risk_score,
            report=report,
        )

    def _check_screenable(self, transactions: list[Transaction]) -> None:
        """Reject already-screened or duplicate transactions before any commit."""
        seen: set[str] = set()
        for tx in transactions:
            if tx.status != TransactionStatus.PENDING:
                raise ValueError(f"Transaction {tx.id} has already been screened")
            if tx.id in seen or tx.id in self.store:
                raise DuplicateTransactionError(f"Outcome for {tx.id} already stored")
            seen.add(tx.id)

    def _score_and_commit(self, transaction: Transaction) -> ScreeningOutcome:
        entry = self.history.lookup(transaction.from_account)
        outcome = self.evaluate(transaction, entry)
        # Commit only once the score is final
        self.history.commit(transaction.from_account, outcome.transaction)

        logger.info(
            "transaction_screened",
            transaction_id=transaction.id,
            score=outcome.risk_score.score,
            risk_level=outcome.risk_score.risk_level.value,
            flagged=outcome.risk_score.is_high_risk,
            velocity_count=outcome.risk_score.velocity_count,
        )
        return outcome

    def screen(self, transaction: Transaction) -> ScreeningOutcome:
        """Score, commit and store a single transaction (deterministic report)."""
        self._check_screenable([transaction])
        outcome = self._score_and_commit(transaction)
        self.store.add(outcome)
        return outcome

    def _score_partition(
        self,
        items: list[tuple[int, Transaction]],
    ) -> list[tuple[int, ScreeningOutcome]]:
        return [(index, self._score_and_commit(tx)) for index, tx in items]

    def _score_batch(
        self,
        transactions: list[Transaction],
        max_workers: int,
    ) -> list[ScreeningOutcome]:
        self._check_screenable(transactions)

        if max_workers <= 1:
            return [self._score_and_commit(tx) for tx in transactions]

        # Partition by sender, preserving arrival order inside each partition
        partitions: "OrderedDict[str, list[tuple[int, Transaction]]]" = OrderedDict()
        for index, tx in enumerate(transactions):
            partitions.setdefault(tx.from_account.strip(), []).append((index, tx))

        results: list[Optional[ScreeningOutcome]] = [None] * len(transactions)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            for chunk in pool.map(self._score_partition, partitions.values()):
                for index, outcome in chunk:
                    results[index] = outcome

        logger.info("batch_partitioned", total=len(transactions), partitions=len(partitions))
        return results

    def screen_batch(
        self,
        transactions: list[Transaction],
        max_workers: int = 1,
    ) -> list[ScreeningOutcome]:
        """Screen an ordered batch; results come back in input order."""
        outcomes = self._score_batch(transactions, max_workers)
        for outcome in outcomes:
            self.store.add(outcome)
        return outcomes

    async def _enrich(self, outcome: ScreeningOutcome) -> ScreeningOutcome:
        """Replace the deterministic narrative with the service's, when possible."""
        if not outcome.risk_score.is_high_risk:
            return outcome
        if self.narrative_client is None or not self.narrative_client.is_available:
            return outcome

        result = await self.narrative_client.generate(
            outcome.transaction,
            outcome.risk_score.velocity_count,
        )
        if result is None:
            logger.warning("narrative_fallback", transaction_id=outcome.transaction.id)
            return outcome

        report = outcome.report.model_copy(
            update={
                "narrative": result.narrative,
                "xml_payload": result.xml,
                "narrative_source": "service",
            }
        )
        return outcome.model_copy(update={"report": report})

    async def screen_async(self, transaction: Transaction) -> ScreeningOutcome:
        """Screen one transaction, then enrich its report before storing it."""
        self._check_screenable([transaction])
        outcome = self._score_and_commit(transaction)
        outcome = await self._enrich(outcome)
        self.store.add(outcome)
        return outcome

    async def screen_batch_async(
        self,
        transactions: list[Transaction],
        max_workers: int = 1,
    ) -> list[ScreeningOutcome]:
        """Score the batch in order, then enrich flagged reports concurrently.

        Scores and flags are final before any narrative call is made.
        """
        # Worker-pool joins must not block the event loop
        scored = await asyncio.to_thread(self._score_batch, transactions, max_workers)
        enriched = await asyncio.gather(*(self._enrich(o) for o in scored))
        for outcome in enriched:
            self.store.add(outcome)
        return list(enriched)

    def reset_session(self) -> None:
        """Start a new scoring session (clears account history only)."""
        self.history.reset()
        logger.info("session_reset")
