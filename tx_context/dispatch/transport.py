# Transports that carry action messages to another node.

import abc
import logging
from typing import Any, Dict

import httpx

from tx_context.exceptions import RemoteActionError

logger = logging.getLogger(__name__)

ACT_PATH = "/act"


class Transport(abc.ABC):
    """Sends an action message, together with its transaction id, to another node.

    The transaction id is the only transaction state a transport carries.
    """

    @abc.abstractmethod
    async def send(self, message: Dict[str, Any], transaction_id: str) -> Any:
        """
        Deliver `message` and return the remote action's result.

        Raises:
            RemoteActionError: If the remote node reports an error.
        """
        raise NotImplementedError


class HttpTransport(Transport):
    """Posts action messages to the `/act` endpoint of a remote node.

    Args:
        base_url: Base URL of the remote node.
        client: Shared asynchronous HTTP client.
        timeout: Request timeout in seconds.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def send(self, message: Dict[str, Any], transaction_id: str) -> Any:
        url = f"{self.base_url}{ACT_PATH}"
        logger.debug(f"[{transaction_id}] Sending action to {url}")
        response = await self.client.post(
            url,
            json={"transaction_id": transaction_id, "message": message},
            timeout=self.timeout,
        )
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise RemoteActionError(
                "InvalidResponse",
                f"Unexpected response from {url}: {response.text[:200]!r}",
                response.status_code,
                transaction_id,
            )

        if response.is_error or "error" in body:
            error = body.get("error")
            if not isinstance(error, dict):
                error = {"detail": str(error)} if error else {}
            raise RemoteActionError(
                error.get("type", "UnknownError"),
                error.get("detail", response.text),
                response.status_code,
                error.get("transaction_id", transaction_id),
            )
        return body.get("result")

    def __repr__(self) -> str:
        return f"<HttpTransport({self.base_url})>"
