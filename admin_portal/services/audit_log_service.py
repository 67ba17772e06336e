from datetime import datetime, timezone
from typing import Any, Dict

from admin_portal.core.exceptions import RequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.models.audit_log import AuditLogPage, AuditLogPagination, AuditLogQuery
from admin_portal.services.api_client import AuthorizedApiClient

logger = get_logger("audit_log_service")


def _utc_param(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + "Z"


def build_audit_log_params(query: AuditLogQuery) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if query.start_date:
        params["startDate"] = _utc_param(query.start_date)
    if query.end_date:
        params["endDate"] = _utc_param(query.end_date)
    if query.action:
        params["action"] = query.action
    if query.user_id:
        params["userId"] = query.user_id
    if query.entity_type:
        params["entityType"] = query.entity_type
    params["skip"] = query.skip
    params["take"] = query.take
    return params


class AuditLogService:
    def __init__(self, api: AuthorizedApiClient):
        self.api = api

    async def get_audit_logs(self, query: AuditLogQuery) -> AuditLogPage:
        logger.info(f"Querying audit logs - skip {query.skip}, take {query.take}")

        resp = await self.api.request(
            "GET",
            "/api/admin/audit-logs",
            params=build_audit_log_params(query),
            operation="retrieve audit logs",
            forbidden_message=(
                "Access denied. You do not have permission to view audit logs. Admin role required."
            ),
        )

        if not resp.content:
            logger.warning("Empty audit log response from AdminAPI")
            return AuditLogPage(pagination=AuditLogPagination(skip=query.skip, take=query.take))

        try:
            page = AuditLogPage.model_validate(resp.json())
        except ValueError as e:
            raise RequestFailed("retrieve audit logs", resp.status_code, resp.text) from e

        logger.info(
            f"Retrieved {len(page.logs)} audit logs (total {page.pagination.total}, page {page.current_page})"
        )
        return page
