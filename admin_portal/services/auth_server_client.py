import asyncio

import aiohttp
from pydantic import ValidationError

from admin_portal.core.config import settings
from admin_portal.core.exceptions import TokenRequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.models.auth import TokenResponse

logger = get_logger(__name__)

TOKEN_ENDPOINT = "/connect/token"


class AuthServerClient:
    """Calls AuthServer's token endpoint for password and refresh-token grants."""

    def __init__(self, base_url: str = None, timeout: float = None):
        self.base_url = (base_url or settings.AUTH_SERVER_BASE_URL).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.HTTP_TIMEOUT_SECONDS)

    async def login(self, username: str, password: str) -> TokenResponse:
        logger.info(f"Requesting password grant for {username}")
        return await self._token_request(
            {"grant_type": "password", "username": username, "password": password}
        )

    async def exchange_refresh_token(self, refresh_token: str) -> TokenResponse:
        logger.info(f"Requesting refresh grant (refresh token length {len(refresh_token)})")
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def _token_request(self, fields: dict) -> TokenResponse:
        url = f"{self.base_url}{TOKEN_ENDPOINT}"

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                # --------------------------------------------------------------
                # OAuth2 form body first
                # --------------------------------------------------------------
                async with session.post(url, data=fields) as res:
                    text = await res.text()
                    status = res.status
                    logger.info(f"Token endpoint (form) response: {status}")

                # --------------------------------------------------------------
                # Some AuthServer builds only take JSON
                # --------------------------------------------------------------
                if not 200 <= status < 300:
                    logger.warning(f"Form-encoded token request failed ({status}), retrying as JSON")
                    async with session.post(url, json=fields) as res:
                        text = await res.text()
                        status = res.status
                        logger.info(f"Token endpoint (json) response: {status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Token endpoint unreachable: {e}")
            raise TokenRequestFailed(None, str(e)) from e

        if not 200 <= status < 300:
            logger.error(f"Token request rejected with both formats: {status} {text[:500]}")
            raise TokenRequestFailed(status, text)

        try:
            token = TokenResponse.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Token endpoint returned an unreadable body: {e}")
            raise TokenRequestFailed(status, text) from e

        if not token.access_token:
            logger.error("No access token in token endpoint response")
            raise TokenRequestFailed(status, text)

        return token
