from typing import Any, Dict, Optional

import httpx

from admin_portal.core.config import settings
from admin_portal.core.exceptions import AuthorizationDenied, RequestFailed
from admin_portal.core.logger import get_logger
from admin_portal.services.token_store import TokenStore

logger = get_logger("admin_api_client")

API_KEY_HEADER = "X-Admin-ApiKey"


class AuthorizedApiClient:
    """
    The one place AdminAPI requests are built.

    Attaches the service API key (when configured) and the session's bearer
    token (when present). A missing token is not an error here; AdminAPI
    answers 403 and that is surfaced by `request`.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = None,
        api_key: Optional[str] = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_store = token_store
        self.base_url = (base_url or settings.ADMIN_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.ADMIN_API_KEY
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def build_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key and self.api_key.strip():
            headers[API_KEY_HEADER] = self.api_key
        # Read on every call so a background refresh is picked up
        token = self.token_store.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.build_headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        operation: str,
        forbidden_message: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        allow_not_found: bool = False,
    ) -> Optional[httpx.Response]:
        """
        Send one request and map the outcome.

        403 raises AuthorizationDenied(forbidden_message); 404 returns None
        when `allow_not_found`; any other non-2xx or transport failure raises
        RequestFailed. Nothing is retried.
        """
        logger.info(f"AdminAPI {method} {endpoint}")

        try:
            async with self.client() as client:
                resp = await client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(f"AdminAPI {method} {endpoint} failed to complete: {e}")
            raise RequestFailed(operation, None, str(e)) from e

        if resp.status_code == 403:
            logger.warning(f"Access denied: {method} {endpoint}")
            raise AuthorizationDenied(forbidden_message)

        if resp.status_code == 404 and allow_not_found:
            logger.info(f"Not found: {method} {endpoint}")
            return None

        if not resp.is_success:
            logger.error(f"AdminAPI error {resp.status_code} on {method} {endpoint}: {resp.text[:500]}")
            raise RequestFailed(operation, resp.status_code, resp.text)

        return resp
