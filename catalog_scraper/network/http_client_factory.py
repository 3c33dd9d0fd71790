from __future__ import annotations

from typing import Any

import httpx

from catalog_scraper.config.models import NetworkConfig


class HttpClientFactory:
    """Лениво создаёт общий httpx.AsyncClient для всех задач запуска."""

    def __init__(self, **client_kwargs: Any) -> None:
        self._client_kwargs = client_kwargs
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_network(cls, network: NetworkConfig, **extra: Any) -> "HttpClientFactory":
        headers: dict[str, str] = {}
        if network.accept_language:
            headers["Accept-Language"] = network.accept_language
        return cls(
            timeout=network.request_timeout_sec,
            follow_redirects=True,
            headers=headers,
            **extra,
        )

    def get(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(**self._client_kwargs)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
