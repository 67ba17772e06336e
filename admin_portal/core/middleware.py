import time

from fastapi import Request

from admin_portal.core.config import settings
from admin_portal.core.logger import get_logger

logger = get_logger("request_logger")


async def log_requests(request: Request, call_next):
    start_time = time.perf_counter()
    has_session = settings.SESSION_COOKIE_NAME in request.cookies
    logger.info(f"Started request {request.method} {request.url.path} (session={has_session})")
    response = await call_next(request)
    duration = time.perf_counter() - start_time
    log = logger.warning if response.status_code in (401, 403) else logger.info
    log(
        f"Completed request {request.method} {request.url.path} "
        f"with status={response.status_code} in {duration:.3f}s"
    )
    return response
