from typing import List, Optional

from pydantic import BaseModel

from admin_portal.models.auth import Principal
from admin_portal.models.quote import QuoteDetail


class MessageResponse(BaseModel):
    message: str


class ErrorDetail(BaseModel):
    status_code: Optional[int] = None
    body: str = ""


class SessionResponse(BaseModel):
    authenticated: bool
    principal: Optional[Principal] = None


class RefreshResponse(BaseModel):
    refreshed: bool


class QuoteListResponse(BaseModel):
    count: int
    quotes: List[QuoteDetail]


class QuoteDetailView(BaseModel):
    quote_id: str
    quote: Optional[QuoteDetail] = None
    status_label: str = "Unknown"
    action_panel: str = "unknown"
    can_acknowledge: bool = False
    can_respond: bool = False
    can_accept: bool = False
    can_cancel: bool = False
    is_saving: bool = False
    outcome: Optional[str] = None
    success_message: Optional[str] = None
    error_message: Optional[str] = None
    error_detail: Optional[ErrorDetail] = None
