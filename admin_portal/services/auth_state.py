from typing import Callable, List, Optional

from admin_portal.core.logger import get_logger
from admin_portal.models.auth import Principal
from admin_portal.services.jwt_claims import DEFAULT_ROLE, decode_token
from admin_portal.services.token_store import TokenStore

logger = get_logger(__name__)

AuthListener = Callable[[Optional[Principal]], None]


class AuthState:
    """
    Authenticated identity for one portal session.

    Listeners registered with `subscribe` are told about every login,
    token refresh and logout. The principal is tied to the token it was
    decoded from: once that token leaves the store or expires, `principal`
    returns None.
    """

    def __init__(self, token_store: TokenStore, default_role: str = DEFAULT_ROLE):
        self._token_store = token_store
        self._default_role = default_role
        self._principal: Optional[Principal] = None
        self._source_token: Optional[str] = None
        self._listeners: List[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def principal(self) -> Optional[Principal]:
        if self._principal is None:
            return None
        if self._token_store.access_token != self._source_token:
            return None
        claims = decode_token(self._source_token, self._default_role)
        if claims.is_expired():
            return None
        return self._principal

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def mark_authenticated(self, access_token: str) -> Principal:
        claims = decode_token(access_token, self._default_role)
        if not claims.is_valid:
            logger.warning("Access token could not be decoded; identity falls back to defaults")

        self._principal = Principal(
            username=claims.subject or "Unknown",
            role=claims.role or self._default_role,
            user_id=claims.user_id,
            expires_at=claims.expires_at,
        )
        self._source_token = access_token
        logger.info(f"User authenticated: {self._principal.username} ({self._principal.role})")
        self._notify(self._principal)
        return self._principal

    def mark_logged_out(self) -> None:
        previous = self._principal
        self._principal = None
        self._source_token = None
        if previous is not None:
            logger.info(f"User logged out: {previous.username}")
        self._notify(None)

    def _notify(self, principal: Optional[Principal]) -> None:
        for listener in list(self._listeners):
            try:
                listener(principal)
            except Exception:
                logger.exception(f"Auth state listener {listener!r} failed")
