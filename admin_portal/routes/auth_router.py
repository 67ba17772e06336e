from fastapi import APIRouter, Depends, HTTPException, Request, Response

from admin_portal.core.config import settings
from admin_portal.core.exceptions import TokenRequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.core.session import PortalSession
from admin_portal.models.auth import LoginRequest
from admin_portal.models.response import MessageResponse, RefreshResponse, SessionResponse
from admin_portal.routes.dependencies import get_sessions, require_session

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
logger = get_logger("auth_router")


@auth_router.post("/login", response_model=SessionResponse)
async def login(payload: LoginRequest, request: Request, response: Response):
    """
    Sign in against AuthServer and open a portal session.
    Any session already bound to this browser is closed first.
    """
    sessions = get_sessions(request)
    await sessions.remove(request.cookies.get(settings.SESSION_COOKIE_NAME))

    session = sessions.create()
    try:
        principal = await session.login(payload.username, payload.password)
    except TokenRequestFailed as e:
        await sessions.remove(session.session_id)
        if e.status_code is None or e.status_code >= 500:
            logger.error(f"AuthServer unavailable during login: {e.message}")
            raise HTTPException(status_code=502, detail="Sign-in service is unavailable. Try again shortly.")
        logger.warning(f"Login rejected for {payload.username}")
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        session.session_id,
        httponly=True,
        samesite="lax",
    )
    return SessionResponse(authenticated=True, principal=principal)


@auth_router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response):
    await get_sessions(request).remove(request.cookies.get(settings.SESSION_COOKIE_NAME))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Signed out.")


@auth_router.post("/refresh", response_model=RefreshResponse)
async def refresh(session: PortalSession = Depends(require_session)):
    refreshed = await session.refresh_scheduler.refresh_token()
    return RefreshResponse(refreshed=refreshed)


@auth_router.get("/me", response_model=SessionResponse)
async def me(request: Request):
    session = get_sessions(request).get(request.cookies.get(settings.SESSION_COOKIE_NAME))
    principal = session.auth_state.principal if session else None
    return SessionResponse(authenticated=principal is not None, principal=principal)
