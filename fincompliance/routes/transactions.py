"""Transaction lookup endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, Request

from fincompliance.models import Transaction
from fincompliance.storage.memory import ResultStore

router = APIRouter(prefix="/api")


def _get_store(request: Request) -> ResultStore:
    """Retrieve the result store from application state."""
    return request.app.state.store


@router.get("/transactions/{transaction_id}", response_model=Transaction)
async def get_transaction(transaction_id: str, request: Request) -> Transaction:
    try:
        return _get_store(request).get_transaction(transaction_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown transaction {transaction_id}")


@router.get("/accounts/{account_id}/transactions", response_model=List[Transaction])
async def get_account_transactions(account_id: str, request: Request) -> List[Transaction]:
    """Screened transactions sent by an account, in arrival order.

    URL-encoded account ids are automatically decoded by FastAPI.
    """
    return _get_store(request).get_by_account(account_id)
