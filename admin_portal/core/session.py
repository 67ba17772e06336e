import secrets
from typing import Callable, Dict, Optional

from admin_portal.core.logger import get_logger
from admin_portal.models.auth import Principal
from admin_portal.services.api_client import AuthorizedApiClient
from admin_portal.services.audit_log_service import AuditLogService
from admin_portal.services.auth_server_client import AuthServerClient
from admin_portal.services.auth_state import AuthState
from admin_portal.services.quote_service import QuoteService
from admin_portal.services.token_refresh import TokenRefreshScheduler
from admin_portal.services.token_store import TokenStore

logger = get_logger(__name__)


class PortalSession:
    """
    Everything that belongs to one signed-in operator: the token pair, the
    identity decoded from it, the refresh timer and the backend services
    that read the token. Nothing here is shared between sessions.
    """

    def __init__(self, session_id: str, auth_client: AuthServerClient = None, api_transport=None):
        self.session_id = session_id
        self.token_store = TokenStore()
        self.auth_state = AuthState(self.token_store)
        self.auth_client = auth_client or AuthServerClient()
        self.api = AuthorizedApiClient(self.token_store, transport=api_transport)
        self.refresh_scheduler = TokenRefreshScheduler(self.token_store, self.auth_state, self.auth_client)
        self.quotes = QuoteService(self.api)
        self.audit_logs = AuditLogService(self.api)

    async def login(self, username: str, password: str) -> Principal:
        """Raises TokenRequestFailed when AuthServer rejects the credentials."""
        token = await self.auth_client.login(username, password)
        return await self.adopt_tokens(token.access_token, token.refresh_token)

    async def adopt_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> Principal:
        self.refresh_scheduler.stop_auto_refresh()
        # A new login replaces the whole pair, including any earlier refresh token
        self.token_store.clear()
        self.token_store.set(access_token, refresh_token)
        principal = self.auth_state.mark_authenticated(access_token)
        await self.refresh_scheduler.start_auto_refresh()
        return principal

    async def logout(self) -> None:
        self.refresh_scheduler.stop_auto_refresh()
        self.token_store.clear()
        self.auth_state.mark_logged_out()


class SessionRegistry:
    def __init__(self, session_factory: Callable[[str], PortalSession] = None):
        self._factory = session_factory or PortalSession
        self._sessions: Dict[str, PortalSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> PortalSession:
        session_id = secrets.token_urlsafe(32)
        session = self._factory(session_id)
        self._sessions[session_id] = session
        logger.info(f"Session created ({len(self._sessions)} active)")
        return session

    def get(self, session_id: Optional[str]) -> Optional[PortalSession]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    async def remove(self, session_id: Optional[str]) -> None:
        session = self._sessions.pop(session_id, None) if session_id else None
        if session is not None:
            await session.logout()
            logger.info(f"Session closed ({len(self._sessions)} active)")

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.remove(session_id)
