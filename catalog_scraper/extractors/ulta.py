from __future__ import annotations

import re

from bs4 import BeautifulSoup

from catalog_scraper.config.targets import ScrapeTarget
from catalog_scraper.crawler.models import ProductRecord, WorkItem
from catalog_scraper.crawler.utils import resolve_url
from catalog_scraper.extractors.base import register_extractor
from catalog_scraper.extractors.dom import (
    attr_url,
    element_text,
    first_text,
    image_from_node,
    meta_content,
    unique,
)

_DIGITS = re.compile(r"\d+")

# поля, которые сайт пока не отдаёт в разметке, всё равно попадают в запись как None
_DETAIL_FIELDS = (
    "brand",
    "title",
    "description",
    "price",
    "rating",
    "product_type",
    "skin_issues",
    "skin_type",
    "product_components",
    "ingredients",
    "volume",
    "how_to_use",
)

_FIELD_SELECTORS = {
    "brand": "div.ProductInformation > h1 > span > a.Link_Huge",
    "title": "div.ProductInformation > h1 > span.Text-ds--title-5",
    "description": "div.ProductSummary > p",
    "how_to_use": (
        "details[aria-controls='How_To_Use'] > div.Accordion_Huge__content > div > p"
    ),
    "ingredients": (
        "details[aria-controls='Ingredients'] > div.Accordion_Huge__content"
        " > div.Markdown--body-2 > p"
    ),
    "volume": "div.ProductDimension > span.Text-ds--black",
}

_IMAGE_SELECTORS = (
    "div.ProductHero img",
    "div.MediaWrapper img",
)


@register_extractor(ScrapeTarget.ULTA)
class UltaExtractor:
    """Каталог ухода за кожей на ulta.com."""

    target = ScrapeTarget.ULTA
    base_url = "https://www.ulta.com"
    start_path = "/skin-care?N=1z12lx1Z2707&Ns=product.bestseller%7C1"

    def first_page(self) -> str:
        return resolve_url(self.start_path, self.base_url)

    def total_count(self, doc: BeautifulSoup) -> int | None:
        text = first_text(doc, "span.search-res-number")
        if not text:
            return None
        match = _DIGITS.search(text.replace(",", ""))
        return int(match.group()) if match else None

    def list_page(self, doc: BeautifulSoup) -> tuple[str | None, list[WorkItem]]:
        items: list[WorkItem] = []
        for container in doc.select("div.productQvContainer"):
            url = attr_url(container.select_one("a[href]"), "href", self.base_url)
            if not url:
                continue
            items.append(
                WorkItem(
                    source_url=url,
                    id=container.get("id") or None,
                    title=first_text(container, "div.prod-title-desc > h4.prod-title > a"),
                    description=first_text(container, "div.prod-title-desc > p.prod-desc > a"),
                )
            )
        next_page = attr_url(doc.select_one("a.next"), "href", self.base_url)
        return next_page, items

    def detail_page(self, doc: BeautifulSoup, source_url: str) -> ProductRecord:
        fields: dict[str, str | None] = dict.fromkeys(_DETAIL_FIELDS)
        for name, selector in _FIELD_SELECTORS.items():
            fields[name] = element_text(doc, selector)
        return ProductRecord(
            target=self.target.value,
            source_url=source_url,
            id=None,
            fields=fields,
            media_urls=tuple(self._media_urls(doc, source_url)),
        )

    def _media_urls(self, doc: BeautifulSoup, source_url: str) -> list[str]:
        candidates: list[str | None] = []
        og_image = meta_content(doc, "og:image")
        if og_image:
            candidates.append(resolve_url(og_image, source_url))
        for selector in _IMAGE_SELECTORS:
            for node in doc.select(selector):
                candidates.append(image_from_node(node, source_url))
        return unique(candidates)
