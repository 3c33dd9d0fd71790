from __future__ import annotations

import contextlib
from typing import Iterable

import httpx
import pytest

from catalog_scraper.config.models import NetworkConfig
from catalog_scraper.config.targets import ScrapeTarget
from catalog_scraper.crawler.models import ProductRecord, WorkItem
from catalog_scraper.extractors.dom import unique
from catalog_scraper.network.fetcher import PageFetcher

BASE_URL = "https://shop.test"


def listing_html(hrefs: Iterable[str], next_href: str | None = None) -> str:
    links = "".join(f'<a class="item" href="{href}">{href}</a>' for href in hrefs)
    nav = f'<a class="next" href="{next_href}">next</a>' if next_href else ""
    return f"<html><body>{links}{nav}</body></html>"


def detail_html(
    sku: str | None = None,
    title: str | None = None,
    media: Iterable[str] = (),
) -> str:
    parts = []
    if sku:
        parts.append(f'<span class="sku">{sku}</span>')
    if title:
        parts.append(f"<h1>{title}</h1>")
    parts.extend(f'<img class="media" src="{src}"/>' for src in media)
    return f"<html><body>{''.join(parts)}</body></html>"


class FakeExtractor:
    target = ScrapeTarget.ULTA
    base_url = BASE_URL

    def first_page(self) -> str:
        return f"{BASE_URL}/catalog?page=1"

    def total_count(self, doc) -> int | None:
        return None

    def list_page(self, doc):
        items = [
            WorkItem(source_url=node["href"], id=node.get("data-id"))
            for node in doc.select("a.item")
        ]
        next_node = doc.select_one("a.next")
        return (next_node["href"] if next_node else None), items

    def detail_page(self, doc, source_url: str) -> ProductRecord:
        sku = doc.select_one("span.sku")
        title = doc.select_one("h1")
        media = unique(node.get("src") for node in doc.select("img.media"))
        return ProductRecord(
            target=self.target.value,
            source_url=source_url,
            id=sku.get_text(strip=True) if sku else None,
            fields={"title": title.get_text(strip=True) if title else None},
            media_urls=tuple(media),
        )


class SiteStub:
    """Маршруты MockTransport: ответы по URL и счётчик вызовов."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, str]] = {}
        self.failures: dict[str, int] = {}
        self.calls: list[str] = []

    def page(self, url: str, html: str, status: int = 200) -> None:
        self.routes[url] = (status, html.encode("utf-8"), "text/html; charset=utf-8")

    def binary(self, url: str, content: bytes, content_type: str = "image/jpeg") -> None:
        self.routes[url] = (200, content, content_type)

    def fail(self, url: str, times: int = 10**6) -> None:
        self.failures[url] = times

    def count(self, url: str) -> int:
        return self.calls.count(url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        remaining = self.failures.get(url, 0)
        if remaining > 0:
            self.failures[url] = remaining - 1
            raise httpx.ConnectError("connection refused", request=request)
        status, body, content_type = self.routes.get(
            url, (404, b"<html>not found</html>", "text/html")
        )
        return httpx.Response(status, content=body, headers={"content-type": content_type})


@pytest.fixture
def site() -> SiteStub:
    return SiteStub()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def open_fetcher(site: SiteStub):
    @contextlib.asynccontextmanager
    async def _open(**network_kwargs):
        transport = httpx.MockTransport(site.handler)
        async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
            yield PageFetcher(client, NetworkConfig(**network_kwargs))

    return _open
