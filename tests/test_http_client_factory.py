from __future__ import annotations

import asyncio

import httpx

from catalog_scraper.config.models import NetworkConfig
from catalog_scraper.network.http_client_factory import HttpClientFactory


def test_http_client_factory_reuses_single_client():
    async def scenario():
        factory = HttpClientFactory(timeout=5)
        first = factory.get()
        second = factory.get()
        assert first is second
        await factory.aclose()
        assert first.is_closed
        third = factory.get()
        assert third is not first
        await factory.aclose()

    asyncio.run(scenario())


def test_factory_from_network_settings():
    network = NetworkConfig(accept_language="ru-RU,ru;q=0.9", request_timeout_sec=12)

    async def scenario():
        factory = HttpClientFactory.from_network(network)
        client = factory.get()
        try:
            return client.timeout.read, client.headers.get("Accept-Language")
        finally:
            await factory.aclose()

    assert asyncio.run(scenario()) == (12, "ru-RU,ru;q=0.9")


def test_factory_passes_extra_client_options():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text="ok")

    async def scenario():
        factory = HttpClientFactory.from_network(
            NetworkConfig(), transport=httpx.MockTransport(handler)
        )
        try:
            response = await factory.get().get("https://shop.test/")
            return response.text
        finally:
            await factory.aclose()

    assert asyncio.run(scenario()) == "ok"
    assert seen == ["https://shop.test/"]
