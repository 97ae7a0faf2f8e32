"""
Gateway Client

Forwards formatted notifications to the gateway's POST /notify.
No formatting. No retries. One request per submission.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class GatewayForwardError(Exception):
    """The gateway did not accept a notification."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


@dataclass(frozen=True)
class ForwardResult:
    status_code: int
    recipient: Optional[str] = None


class GatewayClient:
    """
    Thin httpx wrapper around the gateway's notify endpoint.

    Pass `client` to share a connection pool or to inject a mock transport.
    """

    def __init__(
        self,
        url: str,
        auth_token: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.auth_token = auth_token
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def forward(self, message: str) -> ForwardResult:
        """
        POST {"message": message} with the bearer token.

        Raises:
            GatewayForwardError: missing token, timeout, connection failure or non-2xx
        """
        if not self.auth_token:
            raise GatewayForwardError("BOT_SECRET_TOKEN is not configured; refusing to forward")

        headers = {
            "Authorization": f"Bearer {self.auth_token}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(
                self.url,
                json={"message": message},
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise GatewayForwardError(
                f"Gateway timed out after {self.timeout}s", details=str(e)
            ) from e
        except httpx.RequestError as e:
            raise GatewayForwardError(
                f"Gateway unreachable: {type(e).__name__}", details=str(e)
            ) from e

        if not response.is_success:
            raise GatewayForwardError(
                f"Gateway returned HTTP {response.status_code}",
                status_code=response.status_code,
                details=response.text,
            )

        recipient = None
        try:
            body = response.json()
            if isinstance(body, dict):
                recipient = body.get("recipient")
        except ValueError:
            logger.debug("Gateway response was not JSON")

        return ForwardResult(status_code=response.status_code, recipient=recipient)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
