import time

import httpx

from awakenfetch.infra.http.rate_limited_client import RateLimitedClient


def _transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


class TestRateLimitedClient:
    async def test_get_forwards_params_and_headers(self):
        seen: list[httpx.Request] = []
        async with RateLimitedClient(rate_per_second=1000, transport=_transport(seen)) as client:
            resp = await client.get("https://api.test/x", params={"page": 2}, headers={"X-Key": "k"})

        assert resp.json() == {"ok": True}
        assert seen[0].url.params["page"] == "2"
        assert seen[0].headers["x-key"] == "k"

    async def test_spaces_consecutive_requests(self):
        seen: list[httpx.Request] = []
        async with RateLimitedClient(rate_per_second=20.0, transport=_transport(seen)) as client:
            start = time.monotonic()
            await client.get("https://api.test/a")
            await client.get("https://api.test/b")
            await client.get("https://api.test/c")
            elapsed = time.monotonic() - start

        assert len(seen) == 3
        # Two gaps of at least 50ms each
        assert elapsed >= 0.09
