"""Per-account session history used for velocity and pattern signals.

Each sending account has one AccountHistoryEntry holding running counters,
so a new transaction is scored without rescanning the transaction log.
Entries are only advanced by commit(), which the screening engine calls
after a transaction's score is final. Lookups therefore see every earlier
commit of the same batch, in arrival order.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from fincompliance.models import Transaction


def _normalize_key(account_id: str) -> str:
    """Account ids are compared exactly, minus surrounding whitespace."""
    return account_id.strip()


@dataclass
class AccountHistoryEntry:
    """Running session state for one sending account."""

    count: int = 0
    last_beneficiary: Optional[str] = None
    last_timestamp: Optional[datetime] = None
    beneficiary_counts: Dict[str, int] = field(default_factory=dict)
    beneficiaries: Set[str] = field(default_factory=set)
    transaction_ids: List[str] = field(default_factory=list)

    def pair_count(self, beneficiary: str) -> int:
        """Transactions already sent to `beneficiary` this session."""
        return self.beneficiary_counts.get(_normalize_key(beneficiary), 0)

    def copy(self) -> "AccountHistoryEntry":
        return AccountHistoryEntry(
            count=self.count,
            last_beneficiary=self.last_beneficiary,
            last_timestamp=self.last_timestamp,
            beneficiary_counts=dict(self.beneficiary_counts),
            beneficiaries=set(self.beneficiaries),
            transaction_ids=list(self.transaction_ids),
        )


class AccountHistoryStore:
    """Session history keyed by sending account.

    Commits for one account are serialized by a lock, so workers that own
    disjoint sets of accounts can commit concurrently.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, AccountHistoryEntry] = {}
        self._lock = threading.Lock()

    def lookup(self, account_id: str) -> AccountHistoryEntry:
        """Return a snapshot of the account's entry (zero-valued if unknown)."""
        entry = self._entries.get(_normalize_key(account_id))
        if entry is None:
            return AccountHistoryEntry()
        return entry.copy()

    def commit(self, account_id: str, transaction: Transaction) -> AccountHistoryEntry:
        """Append a scored transaction to the account's session."""
        key = _normalize_key(account_id)
        beneficiary = _normalize_key(transaction.to_account)

        with self._lock:
            entry = self._entries.setdefault(key, AccountHistoryEntry())
            entry.count += 1
            entry.last_beneficiary = beneficiary
            entry.last_timestamp = transaction.timestamp
            entry.beneficiary_counts[beneficiary] = entry.beneficiary_counts.get(beneficiary, 0) + 1
            entry.beneficiaries.add(beneficiary)
            entry.transaction_ids.append(transaction.id)
            return entry.copy()

    def reset(self) -> None:
        """Forget all session state (session boundary)."""
        with self._lock:
            self._entries.clear()
