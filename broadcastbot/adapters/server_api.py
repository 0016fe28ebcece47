import logging
import httpx
from typing import Any, Optional
from broadcastbot.core.errors import TransportError, MalformedResponseError

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}


class ServerApiClient:
    """Passthrough to the local REST server at `<base_url>/api/<endpoint>`."""

    def __init__(self, base_url: str = "http://localhost:5000", http_client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    async def request(
        self,
        endpoint: str = "customers",
        method: str = "GET",
        body: Any = None,
        token: Optional[str] = None
    ) -> Any:
        """
        Call the server and return the decoded JSON response.

        The body is only sent for POST, PUT and PATCH. A bearer token is
        forwarded when given.
        """
        method = method.upper()
        url = f"{self.base_url}/api/{endpoint}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs = {"headers": headers}
        if body is not None and method in BODY_METHODS:
            kwargs["json"] = body

        logger.info(f"🖥️ {method} {url}")
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Server request failed: {e}") from e

        logger.debug("Received response from server")
        if response.is_error:
            raise TransportError(f"Server responded with status: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Server returned non-JSON body: {e}") from e

    async def aclose(self):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
