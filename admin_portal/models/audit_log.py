from datetime import datetime
from typing import List, Optional

from pydantic import Field

from admin_portal.models.quote import CamelModel

MAX_AUDIT_LOG_TAKE = 1000


class AuditLogEntry(CamelModel):
    id: str = ""
    timestamp: Optional[datetime] = None
    user_id: str = ""
    username: str = ""
    user_role: str = ""
    # e.g. Quote.Acknowledged, User.RoleChanged
    action: str = ""
    entity_type: str = ""
    entity_id: Optional[str] = None
    ip_address: str = ""
    http_method: str = ""
    endpoint_path: str = ""
    result: str = ""
    details: Optional[str] = None


class AuditLogQuery(CamelModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    action: Optional[str] = None
    user_id: Optional[str] = None
    entity_type: Optional[str] = None
    skip: int = Field(0, ge=0)
    take: int = Field(100, ge=1, le=MAX_AUDIT_LOG_TAKE)


class AuditLogPagination(CamelModel):
    total: int = 0
    skip: int = 0
    take: int = 100
    returned: int = 0


class AuditLogPage(CamelModel):
    logs: List[AuditLogEntry] = []
    pagination: AuditLogPagination = AuditLogPagination()

    @property
    def current_page(self) -> int:
        if self.pagination.take <= 0:
            return 1
        return self.pagination.skip // self.pagination.take + 1

    @property
    def total_pages(self) -> int:
        if self.pagination.take <= 0:
            return 0
        return -(-self.pagination.total // self.pagination.take)

    @property
    def has_previous_page(self) -> bool:
        return self.pagination.skip > 0

    @property
    def has_next_page(self) -> bool:
        return self.pagination.skip + self.pagination.returned < self.pagination.total
