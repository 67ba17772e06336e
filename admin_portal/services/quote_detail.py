from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from admin_portal.core.exceptions import AuthorizationDenied, RequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.models.quote import (
    AcknowledgeQuoteRequest,
    QuoteDetail,
    QuoteStatus,
    RespondToQuoteRequest,
)
from admin_portal.models.response import ErrorDetail, QuoteDetailView
from admin_portal.services.quote_service import QuoteService

logger = get_logger(__name__)


class ActionPanel(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RESPONDED = "responded"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class ActionOutcome(str, Enum):
    SUCCESS = "success"
    DENIED = "denied"
    FAILED = "failed"
    REJECTED = "rejected"


_PANELS = {
    QuoteStatus.PENDING: ActionPanel.PENDING,
    QuoteStatus.ACKNOWLEDGED: ActionPanel.ACKNOWLEDGED,
    QuoteStatus.RESPONDED: ActionPanel.RESPONDED,
    QuoteStatus.ACCEPTED: ActionPanel.ACCEPTED,
    QuoteStatus.CANCELLED: ActionPanel.CANCELLED,
}


def format_status(raw: Optional[str]) -> str:
    status = QuoteStatus.parse(raw)
    if status is not None:
        return status.value
    return raw.strip() if raw and raw.strip() else "Unknown"


class QuoteDetailViewModel:
    """
    Drives one quote through its lifecycle from the detail page.

    The current status decides which action is offered. Every action
    re-fetches the quote afterwards instead of patching the local copy.
    """

    def __init__(self, quotes: QuoteService, quote_id: str):
        self.quotes = quotes
        self.quote_id = quote_id
        self.quote: Optional[QuoteDetail] = None

        self.is_loading = False
        self.is_saving = False
        self.outcome: Optional[ActionOutcome] = None
        self.success_message: Optional[str] = None
        self.error_message: Optional[str] = None
        self.error_detail: Optional[ErrorDetail] = None

        # form inputs
        self.acknowledge_notes: Optional[str] = None
        self.estimated_price: Optional[Decimal] = None
        self.estimated_pickup_time: Optional[datetime] = None
        self.response_notes: Optional[str] = None

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------
    async def load(self) -> Optional[QuoteDetail]:
        self.is_loading = True
        try:
            self.quote = await self.quotes.get_quote(self.quote_id)
            if self.quote is None:
                self.error_message = "Quote not found."
        except AuthorizationDenied as e:
            self.quote = None
            self.error_message = e.message
        except RequestFailed as e:
            # The previous copy may predate an action that just succeeded
            self.quote = None
            self.error_message = e.message
            self.error_detail = ErrorDetail(status_code=e.status_code, body=e.body)
            logger.error(f"Error loading quote {self.quote_id}: {e.message}")
        finally:
            self.is_loading = False
        return self.quote

    # -------------------------------------------------------------------
    # What the page may offer
    # -------------------------------------------------------------------
    @property
    def status(self) -> Optional[QuoteStatus]:
        return self.quote.workflow_status if self.quote else None

    @property
    def action_panel(self) -> ActionPanel:
        return _PANELS.get(self.status, ActionPanel.UNKNOWN)

    @property
    def can_acknowledge(self) -> bool:
        return not self.is_saving and self.status is QuoteStatus.PENDING

    @property
    def can_respond(self) -> bool:
        return (
            not self.is_saving
            and self.status is QuoteStatus.ACKNOWLEDGED
            and self.estimated_price is not None
            and self.estimated_pickup_time is not None
        )

    @property
    def can_accept(self) -> bool:
        return not self.is_saving and self.status is QuoteStatus.RESPONDED

    @property
    def can_cancel(self) -> bool:
        return not self.is_saving and self.status is QuoteStatus.RESPONDED

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------
    async def acknowledge(self) -> bool:
        if not self.can_acknowledge:
            return self._reject("acknowledge")
        request = AcknowledgeQuoteRequest(notes=self.acknowledge_notes)
        return await self._run_action(
            "acknowledge",
            lambda: self.quotes.acknowledge_quote(self.quote_id, request),
            "Quote acknowledged successfully! You can now enter price and ETA estimates.",
        )

    async def respond(self) -> bool:
        if not self.can_respond:
            if self.status is QuoteStatus.ACKNOWLEDGED and not self.is_saving:
                self.outcome = ActionOutcome.REJECTED
                self.error_message = "Estimated price and pickup time are both required."
                return False
            return self._reject("respond to")

        pickup = self.estimated_pickup_time
        if pickup.tzinfo is None:
            # datetime-local inputs carry no zone; the portal works in UTC
            pickup = pickup.replace(tzinfo=timezone.utc)
        try:
            request = RespondToQuoteRequest(
                estimated_price=self.estimated_price,
                estimated_pickup_time=pickup,
                notes=self.response_notes,
            )
        except ValidationError as e:
            self.outcome = ActionOutcome.REJECTED
            self.error_message = f"Invalid estimate: {e.errors()[0]['msg']}"
            return False

        return await self._run_action(
            "respond to",
            lambda: self.quotes.respond_to_quote(self.quote_id, request),
            f"Response sent to customer with estimate: ${request.estimated_price:,.2f}. "
            "Awaiting their acceptance.",
        )

    async def accept(self) -> bool:
        if not self.can_accept:
            return self._reject("accept")
        return await self._run_action(
            "accept",
            lambda: self.quotes.accept_quote(self.quote_id),
            "Quote accepted.",
        )

    async def cancel(self) -> bool:
        if not self.can_cancel:
            return self._reject("cancel")
        return await self._run_action(
            "cancel",
            lambda: self.quotes.cancel_quote(self.quote_id),
            "Quote cancelled.",
        )

    def _reject(self, verb: str) -> bool:
        self.outcome = ActionOutcome.REJECTED
        if self.is_saving:
            self.error_message = "Another action is still in progress."
        else:
            current = format_status(self.quote.status if self.quote else None)
            self.error_message = f"Cannot {verb} a quote that is {current}."
        return False

    async def _run_action(self, verb: str, call: Callable[[], Awaitable[None]], success_message: str) -> bool:
        self.is_saving = True
        self.error_message = None
        self.error_detail = None
        self.success_message = None

        try:
            await call()
        except AuthorizationDenied as e:
            self.outcome = ActionOutcome.DENIED
            self.error_message = e.message
            return False
        except RequestFailed as e:
            self.outcome = ActionOutcome.FAILED
            self.error_message = e.message
            self.error_detail = ErrorDetail(status_code=e.status_code, body=e.body)
            logger.error(f"Error trying to {verb} quote {self.quote_id}: {e.message}")
            return False
        finally:
            self.is_saving = False

        self.outcome = ActionOutcome.SUCCESS
        self.success_message = success_message
        await self.load()
        return True

    def to_view(self) -> QuoteDetailView:
        return QuoteDetailView(
            quote_id=self.quote_id,
            quote=self.quote,
            status_label=format_status(self.quote.status if self.quote else None),
            action_panel=self.action_panel.value,
            can_acknowledge=self.can_acknowledge,
            can_respond=self.can_respond,
            can_accept=self.can_accept,
            can_cancel=self.can_cancel,
            is_saving=self.is_saving,
            outcome=self.outcome.value if self.outcome else None,
            success_message=self.success_message,
            error_message=self.error_message,
            error_detail=self.error_detail,
        )
