from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from admin_portal.core.logger import get_logger
from admin_portal.core.session import PortalSession
from admin_portal.models.quote import UpdateQuoteRequest
from admin_portal.models.request import AcknowledgeForm, RespondForm
from admin_portal.models.response import MessageResponse, QuoteDetailView, QuoteListResponse
from admin_portal.routes.dependencies import require_session
from admin_portal.services.quote_detail import ActionOutcome, QuoteDetailViewModel

quote_router = APIRouter(prefix="/quotes", tags=["Quote"])

logger = get_logger(__name__)

OUTCOME_STATUS = {
    ActionOutcome.SUCCESS: 200,
    ActionOutcome.DENIED: 403,
    ActionOutcome.FAILED: 502,
    ActionOutcome.REJECTED: 422,
}


async def _load_view_model(session: PortalSession, quote_id: str) -> QuoteDetailViewModel:
    # AuthorizationDenied / RequestFailed propagate to the app-level handlers
    quote = await session.quotes.get_quote(quote_id)
    if quote is None:
        raise HTTPException(status_code=404, detail="Quote not found.")
    view_model = QuoteDetailViewModel(session.quotes, quote_id)
    view_model.quote = quote
    return view_model


def _action_response(view_model: QuoteDetailViewModel) -> JSONResponse:
    status_code = OUTCOME_STATUS.get(view_model.outcome, 200)
    return JSONResponse(
        status_code=status_code,
        content=view_model.to_view().model_dump(mode="json", by_alias=True),
    )


@quote_router.get("", response_model=QuoteListResponse)
async def list_quotes(
    take: Optional[int] = Query(None, ge=1, le=1000),
    session: PortalSession = Depends(require_session),
):
    quotes = await session.quotes.get_quotes(take)
    return QuoteListResponse(count=len(quotes), quotes=quotes)


@quote_router.get("/{quote_id}", response_model=QuoteDetailView)
async def quote_detail(quote_id: str, session: PortalSession = Depends(require_session)):
    view_model = await _load_view_model(session, quote_id)
    return view_model.to_view()


@quote_router.put("/{quote_id}", response_model=MessageResponse)
async def update_quote(
    quote_id: str,
    payload: UpdateQuoteRequest,
    session: PortalSession = Depends(require_session),
):
    await session.quotes.update_quote(quote_id, payload)
    return MessageResponse(message="Quote updated.")


@quote_router.post("/{quote_id}/acknowledge", response_model=QuoteDetailView)
async def acknowledge_quote(
    quote_id: str,
    payload: AcknowledgeForm = None,
    session: PortalSession = Depends(require_session),
):
    view_model = await _load_view_model(session, quote_id)
    view_model.acknowledge_notes = payload.notes if payload else None
    await view_model.acknowledge()
    return _action_response(view_model)


@quote_router.post("/{quote_id}/respond", response_model=QuoteDetailView)
async def respond_to_quote(
    quote_id: str,
    payload: RespondForm,
    session: PortalSession = Depends(require_session),
):
    view_model = await _load_view_model(session, quote_id)
    view_model.estimated_price = payload.estimated_price
    view_model.estimated_pickup_time = payload.estimated_pickup_time
    view_model.response_notes = payload.notes
    await view_model.respond()
    return _action_response(view_model)


@quote_router.post("/{quote_id}/accept", response_model=QuoteDetailView)
async def accept_quote(quote_id: str, session: PortalSession = Depends(require_session)):
    view_model = await _load_view_model(session, quote_id)
    await view_model.accept()
    return _action_response(view_model)


@quote_router.post("/{quote_id}/cancel", response_model=QuoteDetailView)
async def cancel_quote(quote_id: str, session: PortalSession = Depends(require_session)):
    view_model = await _load_view_model(session, quote_id)
    await view_model.cancel()
    return _action_response(view_model)
