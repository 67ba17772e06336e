from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class QuoteStatus(str, Enum):
    PENDING = "Pending"
    ACKNOWLEDGED = "Acknowledged"
    RESPONDED = "Responded"
    ACCEPTED = "Accepted"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["QuoteStatus"]:
        """Map a backend status string to a known status, or None if unrecognized."""
        if not raw:
            return None
        for status in cls:
            if status.value.lower() == raw.strip().lower():
                return status
        return None


TERMINAL_STATUSES = frozenset({QuoteStatus.ACCEPTED, QuoteStatus.CANCELLED})


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuoteDetail(CamelModel):
    id: str
    created_utc: Optional[datetime] = None
    # Kept as the raw string: unknown values are displayed, never rejected
    status: Optional[str] = None

    booker_name: str = ""
    booker_email: str = ""
    booker_phone: Optional[str] = None
    passenger_name: str = ""
    passenger_phone: Optional[str] = None
    vehicle_class: str = ""
    pickup_location: str = ""
    dropoff_location: Optional[str] = None
    pickup_date_time: Optional[datetime] = None
    passenger_count: int = 0
    luggage: int = 0
    special_requests: Optional[str] = None

    quoted_price: Optional[Decimal] = None
    admin_notes: Optional[str] = None
    updated_utc: Optional[datetime] = None
    updated_by: Optional[str] = None

    created_by_user_id: Optional[str] = None
    modified_by_user_id: Optional[str] = None
    modified_on_utc: Optional[datetime] = None

    acknowledged_at: Optional[datetime] = None
    acknowledged_by_user_id: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by_user_id: Optional[str] = None
    estimated_price: Optional[Decimal] = None
    estimated_pickup_time: Optional[datetime] = None
    notes: Optional[str] = None
    booking_id: Optional[str] = None

    @property
    def workflow_status(self) -> Optional[QuoteStatus]:
        return QuoteStatus.parse(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.workflow_status in TERMINAL_STATUSES

    @property
    def has_estimate(self) -> bool:
        return self.estimated_price is not None and self.estimated_pickup_time is not None

    @property
    def booking_pending(self) -> bool:
        """Accepted but the backend has not linked the booking yet."""
        return self.workflow_status is QuoteStatus.ACCEPTED and not self.booking_id


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


class AcknowledgeQuoteRequest(CamelModel):
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


class RespondToQuoteRequest(CamelModel):
    """Price and pickup time are both mandatory; a missing one fails before any request is sent."""

    estimated_price: Decimal = Field(..., ge=0)
    estimated_pickup_time: datetime
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @field_serializer("estimated_price")
    def serialize_price(self, value: Decimal) -> float:
        return float(value)


class UpdateQuoteRequest(CamelModel):
    quoted_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_serializer("quoted_price")
    def serialize_price(self, value: Optional[Decimal]) -> Optional[float]:
        return None if value is None else float(value)
