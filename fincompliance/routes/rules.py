"""Risk policy and session endpoints."""

from typing import Dict

from fastapi import APIRouter, Request

from fincompliance.config import RiskConfig

router = APIRouter(prefix="/api")


@router.get("/rules", response_model=RiskConfig)
async def get_rules(request: Request) -> RiskConfig:
    """Return the active risk policy.

    The policy is loaded once at startup and is read-only for the
    lifetime of the process.
    """
    return request.app.state.config


@router.post("/session/reset")
async def reset_session(request: Request) -> Dict[str, str]:
    """Start a new scoring session by clearing per-account history.

    Stored outcomes and the audit log are kept.
    """
    request.app.state.engine.reset_session()
    return {"status": "reset"}
