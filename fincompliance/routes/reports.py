"""Risk score and suspicious activity report endpoints for the filing layer."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from fincompliance.models import RiskScore, SuspiciousActivityReport
from fincompliance.storage.memory import ResultStore

router = APIRouter(prefix="/api")


def _get_store(request: Request) -> ResultStore:
    """Retrieve the result store from application state."""
    return request.app.state.store


@router.get("/risk-scores/{transaction_id}", response_model=RiskScore)
async def get_risk_score(transaction_id: str, request: Request) -> RiskScore:
    try:
        return _get_store(request).get_risk_score(transaction_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No risk score for {transaction_id}")


@router.get("/reports/{transaction_id}", response_model=SuspiciousActivityReport)
async def get_report(transaction_id: str, request: Request) -> SuspiciousActivityReport:
    try:
        return _get_store(request).get_report(transaction_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"No report for {transaction_id}")


@router.get("/reports", response_model=List[SuspiciousActivityReport])
async def list_reports(
    request: Request,
    filed: Optional[bool] = Query(default=None),
) -> List[SuspiciousActivityReport]:
    """List reports; `filed=true` returns only STRs ready for filing."""
    return _get_store(request).get_reports(filed=filed)
