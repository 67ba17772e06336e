from fastapi import HTTPException, Request

from admin_portal.core.config import settings
from admin_portal.core.session import PortalSession, SessionRegistry


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def require_session(request: Request) -> PortalSession:
    session = get_sessions(request).get(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in.")
    return session
