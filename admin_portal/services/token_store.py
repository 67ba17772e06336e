from typing import Optional

from admin_portal.models.auth import TokenPair


class TokenStore:
    """
    In-memory access/refresh token pair for one portal session.

    Every write swaps in a whole new `TokenPair`, so a reader sees either the
    old pair or the new one, never a mix. Nothing is persisted; a restart
    means logging in again.
    """

    def __init__(self):
        self._pair: Optional[TokenPair] = None

    def get(self) -> Optional[TokenPair]:
        return self._pair

    def set(self, access_token: str, refresh_token: Optional[str] = None) -> TokenPair:
        if not access_token:
            raise ValueError("access_token is required")
        # Refresh token rotation is optional on AuthServer
        if refresh_token is None and self._pair is not None:
            refresh_token = self._pair.refresh_token
        self._pair = TokenPair(access_token=access_token, refresh_token=refresh_token)
        return self._pair

    def clear(self) -> None:
        self._pair = None

    @property
    def access_token(self) -> Optional[str]:
        pair = self._pair
        return pair.access_token if pair else None

    @property
    def refresh_token(self) -> Optional[str]:
        pair = self._pair
        return pair.refresh_token if pair else None
