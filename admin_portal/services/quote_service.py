from typing import List, Optional

from pydantic import ValidationError

from admin_portal.core.config import settings
from admin_portal.core.exceptions import RequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.models.quote import (
    AcknowledgeQuoteRequest,
    QuoteDetail,
    RespondToQuoteRequest,
    UpdateQuoteRequest,
)
from admin_portal.services.api_client import AuthorizedApiClient

logger = get_logger("quote_service")


class QuoteService:
    """
    Quote lifecycle calls against AdminAPI.

        Pending --acknowledge--> Acknowledged --respond--> Responded --accept/cancel--> Accepted/Cancelled

    No status is checked or cached here: AdminAPI owns the quote and rejects
    illegal transitions, and callers re-fetch after every mutation.
    """

    def __init__(self, api: AuthorizedApiClient):
        self.api = api

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    async def get_quotes(self, take: int = None) -> List[QuoteDetail]:
        take = take or settings.QUOTE_LIST_TAKE
        resp = await self.api.request(
            "GET",
            "/quotes/list",
            params={"take": take},
            operation="get quotes",
            forbidden_message="Access denied. You do not have permission to view quotes.",
        )
        data = _json_or_none(resp)
        if not data:
            return []
        if not isinstance(data, list):
            raise RequestFailed("get quotes", resp.status_code, resp.text)
        try:
            return [QuoteDetail.model_validate(item) for item in data]
        except ValidationError as e:
            logger.error(f"AdminAPI returned a quote list that does not match QuoteDetail: {e}")
            raise RequestFailed("get quotes", resp.status_code, resp.text) from e

    async def get_quote(self, quote_id: str) -> Optional[QuoteDetail]:
        resp = await self.api.request(
            "GET",
            f"/quotes/{quote_id}",
            operation="get quote",
            forbidden_message="Access denied. You don't have permission to view this quote.",
            allow_not_found=True,
        )
        if resp is None:
            return None
        # Only a 404 means "not found"
        data = _json_or_none(resp)
        if not isinstance(data, dict):
            raise RequestFailed("get quote", resp.status_code, resp.text)
        try:
            return QuoteDetail.model_validate(data)
        except ValidationError as e:
            logger.error(f"AdminAPI returned quote {quote_id} that does not match QuoteDetail: {e}")
            raise RequestFailed("get quote", resp.status_code, resp.text) from e

    # -------------------------------------------------------------------
    # Admin edit
    # -------------------------------------------------------------------
    async def update_quote(self, quote_id: str, update: UpdateQuoteRequest) -> None:
        await self.api.request(
            "PUT",
            f"/quotes/{quote_id}",
            json=update.model_dump(mode="json", by_alias=True),
            operation="update quote",
            forbidden_message="Access denied. You don't have permission to update this quote.",
        )
        logger.info(f"Updated quote {quote_id}")

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    async def acknowledge_quote(self, quote_id: str, request: AcknowledgeQuoteRequest = None) -> None:
        request = request or AcknowledgeQuoteRequest()
        await self.api.request(
            "POST",
            f"/quotes/{quote_id}/acknowledge",
            json=request.model_dump(mode="json", by_alias=True),
            operation="acknowledge quote",
            forbidden_message=(
                "Access denied. You do not have permission to acknowledge quotes. Staff role required."
            ),
        )
        logger.info(f"Successfully acknowledged quote {quote_id}")

    async def respond_to_quote(self, quote_id: str, request: RespondToQuoteRequest) -> None:
        await self.api.request(
            "POST",
            f"/quotes/{quote_id}/respond",
            json=request.model_dump(mode="json", by_alias=True),
            operation="respond to quote",
            forbidden_message=(
                "Access denied. You do not have permission to respond to quotes. Staff role required."
            ),
        )
        logger.info(f"Successfully responded to quote {quote_id} with price ${request.estimated_price}")

    async def accept_quote(self, quote_id: str) -> None:
        await self.api.request(
            "POST",
            f"/quotes/{quote_id}/accept",
            operation="accept quote",
            forbidden_message="Access denied. You do not have permission to accept this quote.",
        )
        logger.info(f"Successfully accepted quote {quote_id}")

    async def cancel_quote(self, quote_id: str) -> None:
        await self.api.request(
            "POST",
            f"/quotes/{quote_id}/cancel",
            operation="cancel quote",
            forbidden_message="Access denied. You do not have permission to cancel this quote.",
        )
        logger.info(f"Successfully cancelled quote {quote_id}")


def _json_or_none(resp):
    if resp is None or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        logger.error(f"AdminAPI returned non-JSON body: {resp.text[:200]}")
        raise RequestFailed("decode AdminAPI response", resp.status_code, resp.text)
