import unittest

import httpx

from core.errors import ProbeDispatchError
from core.gateway_client import GatewayClient


class TestGatewayClient(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.requests = []
        self.status_code = 202

        def handler(request: httpx.Request):
            self.requests.append(request)
            return httpx.Response(self.status_code, text="queued")

        self.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.gateway = GatewayClient(
            self.client,
            gateway_url="http://gateway:8080/",
            callback_url="http://pinger:3008/webhook",
        )

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_function_url(self):
        self.assertEqual(
            self.gateway.function_url, "http://gateway:8080/async-function/echoit"
        )

    async def test_dispatch_posts_id_with_callback_header(self):
        await self.gateway.dispatch("probe-1")

        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "http://gateway:8080/async-function/echoit")
        self.assertEqual(request.content, b"probe-1")
        self.assertEqual(request.headers["X-Callback-Url"], "http://pinger:3008/webhook")

    async def test_rejected_dispatch_raises(self):
        self.status_code = 502
        with self.assertRaises(ProbeDispatchError) as ctx:
            await self.gateway.dispatch("probe-1")
        self.assertEqual(ctx.exception.probe_id, "probe-1")
        self.assertIn("502", ctx.exception.reason)

    async def test_unreachable_gateway_raises(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            gateway = GatewayClient(client, "http://gateway:8080", "http://cb")
            with self.assertRaises(ProbeDispatchError):
                await gateway.dispatch("probe-1")


if __name__ == "__main__":
    unittest.main()
