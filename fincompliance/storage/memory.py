"""In-memory storage for screening outcomes and the audit log.

Transactions, risk scores and reports are keyed by transaction id, with a
secondary index by sending account. All data lives in memory and is lost
on restart; persistent storage belongs to the filing layer.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fincompliance.models import (
    AuditEntry,
    RiskScore,
    ScreeningOutcome,
    SuspiciousActivityReport,
    Transaction,
)


class DuplicateTransactionError(Exception):
    """Raised when an outcome is stored twice for the same transaction id."""


def _normalize_key(account_id: str) -> str:
    return account_id.strip()


def as_utc(value: datetime) -> datetime:
    """Read a naive timestamp as UTC so it compares with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ResultStore:
    """Thread-safe in-memory store for screening outcomes and audit entries."""

    def __init__(self) -> None:
        self._transactions: Dict[str, Transaction] = {}
        self._risk_scores: Dict[str, RiskScore] = {}
        self._reports: Dict[str, SuspiciousActivityReport] = {}
        # Transaction ids indexed by sending account, in arrival order
        self._by_account: Dict[str, List[str]] = {}
        # Chronological audit log
        self._audit_log: List[AuditEntry] = []
        self._lock = threading.Lock()

    def add(self, outcome: ScreeningOutcome) -> None:
        """Store a finished outcome. Each transaction id is written once."""
        tx = outcome.transaction
        with self._lock:
            if tx.id in self._transactions:
                raise DuplicateTransactionError(f"Outcome for {tx.id} already stored")
            self._transactions[tx.id] = tx
            self._risk_scores[tx.id] = outcome.risk_score
            self._reports[tx.id] = outcome.report
            self._by_account.setdefault(_normalize_key(tx.from_account), []).append(tx.id)
            self._audit_log.append(
                AuditEntry(
                    transaction_id=tx.id,
                    timestamp=as_utc(tx.timestamp or outcome.report.generated_at),
                    transaction=tx,
                    risk_score=outcome.risk_score.score,
                    risk_level=outcome.risk_score.risk_level,
                    reasons=outcome.risk_score.reasons,
                    is_filed=outcome.report.is_filed,
                )
            )

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._transactions

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._transactions[transaction_id]

    def get_risk_score(self, transaction_id: str) -> RiskScore:
        return self._risk_scores[transaction_id]

    def get_report(self, transaction_id: str) -> SuspiciousActivityReport:
        return self._reports[transaction_id]

    def get_by_account(self, account_id: str) -> List[Transaction]:
        """Return an account's transactions in arrival order."""
        ids = self._by_account.get(_normalize_key(account_id), [])
        return [self._transactions[i] for i in ids]

    def get_reports(self, filed: Optional[bool] = None) -> List[SuspiciousActivityReport]:
        """Return reports, optionally only filed (or only unfiled) ones."""
        reports = list(self._reports.values())
        if filed is not None:
            reports = [r for r in reports if r.is_filed == filed]
        return reports

    def get_audit_log(
        self,
        transaction_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        account_id: Optional[str] = None,
        filed: Optional[bool] = None,
    ) -> List[AuditEntry]:
        """Return audit entries in arrival order, with optional filters."""
        account = _normalize_key(account_id) if account_id is not None else None
        since = as_utc(since) if since is not None else None
        until = as_utc(until) if until is not None else None
        results: List[AuditEntry] = []
        for entry in self._audit_log:
            if transaction_id is not None and entry.transaction_id != transaction_id:
                continue
            if account is not None and entry.transaction.from_account != account:
                continue
            if filed is not None and entry.is_filed != filed:
                continue
            if since is not None and entry.timestamp < since:
                continue
            if until is not None and entry.timestamp > until:
                continue
            results.append(entry)
        return results

