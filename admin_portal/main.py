from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from admin_portal.core.config import settings
from admin_portal.core.exceptions import AuthorizationDenied, RequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.core.middleware import log_requests
from admin_portal.core.session import SessionRegistry
from admin_portal.routes.audit_router import audit_router
from admin_portal.routes.auth_router import auth_router
from admin_portal.routes.quote_router import quote_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.sessions = SessionRegistry()
    logger.info(" Application startup complete")

    yield

    logger.info(" Application shutdown initiated")
    await app.state.sessions.close_all()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(AuthorizationDenied)
async def authorization_denied_handler(request: Request, exc: AuthorizationDenied):
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(RequestFailed)
async def request_failed_handler(request: Request, exc: RequestFailed):
    return JSONResponse(
        status_code=502,
        content={"detail": exc.message, "status_code": exc.status_code, "body": exc.body},
    )


app.middleware("http")(log_requests)
app.include_router(auth_router)
app.include_router(quote_router)
app.include_router(audit_router)
