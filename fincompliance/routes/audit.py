"""Audit trail endpoint for compliance review and the filing layer."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from fincompliance.models import AuditEntry
from fincompliance.storage.memory import as_utc

router = APIRouter(prefix="/api")


@router.get("/audit", response_model=List[AuditEntry])
async def get_audit_log(
    request: Request,
    transaction_id: Optional[str] = Query(default=None),
    account_id: Optional[str] = Query(default=None),
    filed: Optional[bool] = Query(default=None),
    from_date: Optional[datetime] = Query(default=None),
    to_date: Optional[datetime] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
) -> List[AuditEntry]:
    """Screened transactions with their scores and filing status.

    Entries are in arrival order; `limit` keeps the most recent ones.
    Entry timestamps are the transaction time, or the report generation
    time when the transaction carried none. Naive timestamps, stored or
    queried, are read as UTC.
    """
    if from_date is not None:
        from_date = as_utc(from_date)
    if to_date is not None:
        to_date = as_utc(to_date)
    if from_date and to_date and from_date > to_date:
        raise HTTPException(status_code=400, detail="from_date must not be after to_date")

    entries = request.app.state.store.get_audit_log(
        transaction_id=transaction_id,
        account_id=account_id,
        filed=filed,
        since=from_date,
        until=to_date,
    )
    if limit is not None:
        entries = entries[-limit:]
    return entries
