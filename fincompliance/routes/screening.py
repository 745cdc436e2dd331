"""Screening endpoints for single and batch transaction processing."""

from collections import Counter

from fastapi import APIRouter, Request

from fincompliance.ingest import TransactionIngestor
from fincompliance.models import (
    BatchRequest,
    BatchResponse,
    BatchSummary,
    ScreeningOutcome,
    TransactionRequest,
)
from fincompliance.screening.engine import ScreeningEngine

router = APIRouter(prefix="/api")


def _get_engine(request: Request) -> ScreeningEngine:
    """Retrieve the screening engine from application state."""
    return request.app.state.engine


def _get_ingestor(request: Request) -> TransactionIngestor:
    return request.app.state.ingestor


@router.post("/screening", response_model=ScreeningOutcome)
async def screen_transaction(
    transaction: TransactionRequest,
    request: Request,
) -> ScreeningOutcome:
    """Ingest and screen a single transaction."""
    tx = _get_ingestor(request).ingest(transaction)
    return await _get_engine(request).screen_async(tx)


@router.post("/screening/batch", response_model=BatchResponse)
async def screen_batch(
    batch: BatchRequest,
    request: Request,
) -> BatchResponse:
    """Screen an ordered batch of transactions and return an aggregate summary.

    Transactions are scored in arrival order, so velocity, tunneling, burst
    and fan-out signals see earlier transactions of the same batch. The
    summary includes counts per status and risk level and the top 5 most
    common risk factors.
    """
    engine = _get_engine(request)
    txs = _get_ingestor(request).ingest_batch(batch.transactions)
    results = await engine.screen_batch_async(
        txs,
        max_workers=request.app.state.settings.batch_max_workers,
    )

    flagged = sum(1 for r in results if r.risk_score.is_high_risk)
    levels = Counter(r.risk_score.risk_level.value for r in results)

    all_reasons: list[str] = []
    for r in results:
        all_reasons.extend(r.risk_score.reasons)
    reason_counts = Counter(all_reasons)
    common_risk_factors = [reason for reason, _ in reason_counts.most_common(5)]

    summary = BatchSummary(
        total=len(results),
        flagged=flagged,
        processed=len(results) - flagged,
        risk_levels=dict(levels),
        common_risk_factors=common_risk_factors,
    )

    return BatchResponse(results=results, summary=summary)
