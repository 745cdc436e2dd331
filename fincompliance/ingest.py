"""Ingestion boundary.

Validated TransactionRequest records become Transactions here: each is
given a sequential "TX-<n>" identifier in arrival order. The scoring
pipeline never invents identifiers of its own.
"""

import itertools
import threading

from fincompliance.models import Transaction, TransactionRequest


class TransactionIngestor:
    """Assigns transaction ids in arrival order."""

    def __init__(self, prefix: str = "TX", start: int = 1001) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            return f"{self.prefix}-{next(self._counter)}"

    def ingest(self, request: TransactionRequest) -> Transaction:
        """Turn a validated request into a pending Transaction."""
        return Transaction(id=self.next_id(), **request.model_dump())

    def ingest_batch(self, requests: list[TransactionRequest]) -> list[Transaction]:
        return [self.ingest(r) for r in requests]
