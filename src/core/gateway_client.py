import logging

import httpx

from core.errors import ProbeDispatchError
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class GatewayClient:
    """
    Sends probes to an asynchronous function behind an OpenFaaS-style gateway.
    The gateway queues the call and later POSTs the function's output to the
    URL given in ``X-Callback-Url``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        gateway_url: str,
        callback_url: str,
        function_name: str = "echoit",
        timeout_seconds: float = 10.0,
    ):
        self.client = client
        self.gateway_url = gateway_url
        self.callback_url = callback_url
        self.function_name = function_name
        self.timeout_seconds = timeout_seconds

    @property
    def function_url(self) -> str:
        return f"{self.gateway_url.rstrip('/')}/async-function/{self.function_name}"

    @Profiler.profile
    async def dispatch(self, probe_id: str):
        """
        Hand one probe to the gateway.

        Args:
            probe_id (str): Sent as the request body; the function echoes it back.

        Raises:
            ProbeDispatchError: If the gateway is unreachable or does not accept the call.
        """
        try:
            resp = await self.client.post(
                self.function_url,
                content=probe_id,
                headers={"X-Callback-Url": self.callback_url},
                timeout=self.timeout_seconds,
            )
        except httpx.RequestError as e:
            raise ProbeDispatchError(probe_id, repr(e)) from e

        if resp.status_code >= 300:
            raise ProbeDispatchError(
                probe_id, f"gateway answered {resp.status_code}: {resp.text}"
            )
        logger.debug(f"Gateway accepted probe {probe_id} with {resp.status_code}")
