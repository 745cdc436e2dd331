"""Client for the external narrative-generation service.

The service writes a richer prose narrative and FIU XML payload for
transactions that have already been flagged. It is an enhancement layer:
  - If the service is not configured, nothing is called
  - Every call is bounded by a timeout
  - Any failure returns None and the deterministic report is kept

Request:  POST {"transaction": {...}, "velocity_count": n}
Response: {"narrative": "...", "xml": "..."}
"""

import asyncio
from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from fincompliance.models import NarrativeResult, Transaction

logger = structlog.get_logger(__name__)


class NarrativeClient:
    """Asynchronous, fallible narrative generator."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict:
        headers = {"content-type": "application/json"}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, payload: dict) -> NarrativeResult:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(self.base_url, json=payload, headers=self._headers())
            response.raise_for_status()
            return NarrativeResult.model_validate(response.json())

    async def generate(
        self,
        transaction: Transaction,
        velocity_count: int,
    ) -> Optional[NarrativeResult]:
        """Ask the service for a narrative; None on absence, failure or timeout."""
        if not self.is_available:
            return None

        payload = {
            "transaction": transaction.model_dump(mode="json"),
            "velocity_count": velocity_count,
        }

        try:
            result = await asyncio.wait_for(self._post(payload), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("narrative_timeout", transaction_id=transaction.id, timeout=self.timeout_seconds)
            return None
        except httpx.HTTPError as e:
            logger.warning("narrative_request_failed", transaction_id=transaction.id, error=str(e))
            return None
        except (ValueError, ValidationError) as e:
            # Body was not JSON or did not have the expected shape
            logger.warning("narrative_invalid_response", transaction_id=transaction.id, error=str(e))
            return None

        logger.info("narrative_generated", transaction_id=transaction.id)
        return result
