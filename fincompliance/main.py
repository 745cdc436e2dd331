"""FinCompliance Transaction Risk Screening API.

Scores financial transactions for money-laundering risk and produces a
suspicious activity report for each one. Rules, velocity patterns and two
heuristic score models feed a weighted composite score; flagged
transactions get a filed STR, optionally enriched by an external
narrative service.

Run with:
    python3 -m uvicorn fincompliance.main:app --host 0.0.0.0 --port 8000
"""

from typing import Dict

import structlog
from fastapi import FastAPI

from fincompliance.config import load_risk_config
from fincompliance.ingest import TransactionIngestor
from fincompliance.logging_config import configure_logging
from fincompliance.narrative.client import NarrativeClient
from fincompliance.routes import audit, reports, rules, screening, transactions
from fincompliance.screening.engine import ScreeningEngine
from fincompliance.settings import Settings
from fincompliance.storage.history import AccountHistoryStore
from fincompliance.storage.memory import ResultStore

logger = structlog.get_logger(__name__)

app = FastAPI(
    title="FinCompliance Transaction Risk Screening API",
    description=(
        "Money-laundering risk scoring for financial transactions. "
        "Checks high-risk jurisdictions, structuring, velocity, tunneling, "
        "burst and fan-out patterns, and drafts suspicious transaction reports."
    ),
    version="1.0.0",
)


@app.on_event("startup")
async def startup() -> None:
    """Load settings and the risk policy, and initialize the engine."""
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)

    # Invalid configuration is fatal: the error propagates and startup aborts
    config = load_risk_config(settings.risk_config_path or None)

    narrative_client = None
    if settings.narrative_service_url:
        narrative_client = NarrativeClient(
            base_url=settings.narrative_service_url,
            api_key=settings.narrative_service_api_key,
            timeout_seconds=settings.narrative_timeout_seconds,
        )
    else:
        logger.warning("narrative_service_unconfigured", msg="Using deterministic narratives only")

    history = AccountHistoryStore()
    store = ResultStore()
    engine = ScreeningEngine(
        config=config,
        history=history,
        store=store,
        narrative_client=narrative_client,
    )

    # Attach to app state for dependency injection in routes
    app.state.settings = settings
    app.state.config = config
    app.state.history = history
    app.state.store = store
    app.state.engine = engine
    app.state.ingestor = TransactionIngestor()

    logger.info("startup_complete", narrative_service=bool(narrative_client))


# Mount all API routers
app.include_router(screening.router)
app.include_router(transactions.router)
app.include_router(reports.router)
app.include_router(rules.router)
app.include_router(audit.router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy"}
