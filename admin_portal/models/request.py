from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class AcknowledgeForm(BaseModel):
    notes: Optional[str] = None


class RespondForm(BaseModel):
    # Optional here so a half-filled form reaches the view-model and is refused there
    estimated_price: Optional[Decimal] = None
    estimated_pickup_time: Optional[datetime] = None
    notes: Optional[str] = None
