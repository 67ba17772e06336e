from datetime import datetime, timedelta, timezone
from typing import Optional

from admin_portal.core.config import settings
from admin_portal.core.exceptions import TokenRequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.core.timer import RefreshTimer
from admin_portal.services.auth_server_client import AuthServerClient
from admin_portal.services.auth_state import AuthState
from admin_portal.services.jwt_claims import decode_token
from admin_portal.services.token_store import TokenStore

logger = get_logger(__name__)


class TokenRefreshScheduler:
    """
    Keeps the session's access token fresh in the background.

    The first refresh is scheduled `lead` before the current token expires.
    Each later firing is rescheduled from the expiry of whatever token is in
    the store at that point; `period` is only used when that expiry is unknown
    or already inside the lead window.
    """

    def __init__(
        self,
        token_store: TokenStore,
        auth_state: AuthState,
        auth_client: AuthServerClient,
        lead: Optional[timedelta] = None,
        period: Optional[timedelta] = None,
    ):
        self._token_store = token_store
        self._auth_state = auth_state
        self._auth_client = auth_client
        self._lead = lead if lead is not None else timedelta(minutes=settings.TOKEN_REFRESH_LEAD_MINUTES)
        self._period = period if period is not None else timedelta(minutes=settings.TOKEN_REFRESH_PERIOD_MINUTES)
        self._timer: Optional[RefreshTimer] = None
        self._is_refreshing = False

    @property
    def is_running(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    async def start_auto_refresh(self) -> None:
        token = self._token_store.access_token
        if not token:
            logger.warning("No access token found, cannot start auto-refresh")
            return

        claims = decode_token(token)
        if not claims.is_valid or claims.expires_at is None:
            logger.warning("Access token has no readable expiry, auto-refresh not started")
            return

        refresh_at = claims.expires_at - self._lead
        delay = (refresh_at - datetime.now(timezone.utc)).total_seconds()

        if delay <= 0:
            logger.warning("Token expires soon, refreshing immediately")
            await self.refresh_token()
            delay = self._next_delay()

        self.stop_auto_refresh()
        logger.info(f"Token will be refreshed in {delay / 60:.1f} minutes")
        self._timer = RefreshTimer(self.refresh_token, delay, self._next_delay, name="token-refresh")
        self._timer.start()

    def stop_auto_refresh(self) -> None:
        if self._timer is None:
            return
        logger.info("Stopping auto-refresh timer")
        self._timer.cancel()
        self._timer = None

    async def refresh_token(self) -> bool:
        """
        Exchange the refresh token for a new pair. Returns False on any failure,
        leaving the stored token as it was; never raises.
        """
        if self._is_refreshing:
            logger.debug("Refresh already in progress, skipping")
            return False

        self._is_refreshing = True
        try:
            started = self._token_store.get()
            refresh_token = started.refresh_token if started else None
            if not refresh_token:
                logger.warning("No refresh token available")
                return False

            try:
                response = await self._auth_client.exchange_refresh_token(refresh_token)
            except TokenRequestFailed as e:
                logger.error(f"Token refresh failed: {e.message}")
                return False

            # Logout or a new login replaced the pair while the exchange was in flight
            if self._token_store.get() is not started:
                logger.info("Token pair changed while refreshing, discarding new token")
                return False

            self._token_store.set(response.access_token, response.refresh_token)
            if response.refresh_token:
                logger.info("New refresh token received")

            principal = self._auth_state.mark_authenticated(response.access_token)
            logger.info(
                f"Token refreshed for {principal.username} - new token length {len(response.access_token)}"
            )
            return True
        except Exception:
            logger.exception("Unexpected error during token refresh")
            return False
        finally:
            self._is_refreshing = False

    def _next_delay(self) -> float:
        claims = decode_token(self._token_store.access_token)
        if claims.expires_at is not None:
            delay = (claims.expires_at - self._lead - datetime.now(timezone.utc)).total_seconds()
            if delay > 0:
                return delay
        return self._period.total_seconds()
