from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from admin_portal.core.session import PortalSession
from admin_portal.models.audit_log import MAX_AUDIT_LOG_TAKE, AuditLogPage, AuditLogQuery
from admin_portal.routes.dependencies import require_session

audit_router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@audit_router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    action: Optional[str] = None,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    skip: int = Query(0, ge=0),
    take: int = Query(100, ge=1, le=MAX_AUDIT_LOG_TAKE),
    session: PortalSession = Depends(require_session),
):
    """Admin-only on the AdminAPI side; a 403 comes back as AuthorizationDenied."""
    try:
        query = AuditLogQuery(
            start_date=start_date,
            end_date=end_date,
            action=action,
            user_id=user_id,
            entity_type=entity_type,
            skip=skip,
            take=take,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await session.audit_logs.get_audit_logs(query)
