from __future__ import annotations

from dataclasses import replace

from catalog_scraper.config.models import DelayConfig
from catalog_scraper.crawler.channel import ChannelSender
from catalog_scraper.crawler.models import PageCursor, WorkItem
from catalog_scraper.crawler.utils import jitter_sleep, resolve_url
from catalog_scraper.extractors.base import ProductExtractor, parse_document
from catalog_scraper.logger import get_logger
from catalog_scraper.network.fetcher import FetchError, PageFetcher

logger = get_logger(__name__)


class PageCrawler:
    """Последовательно обходит страницы каталога и ставит товары в очередь.

    Обход заканчивается, когда у страницы нет ссылки на следующую, когда
    страницу каталога не удалось загрузить, либо при достижении лимита
    товаров или страниц. В любом из этих случаев канал задач закрывается
    ровно один раз.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: ProductExtractor,
        *,
        delay: DelayConfig,
        item_limit: int | None = None,
        max_pages: int | None = None,
        start_url: str | None = None,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.delay = delay
        self.item_limit = item_limit
        self.max_pages = max_pages
        self.start_url = start_url or extractor.first_page()

    async def run(self, sender: ChannelSender[WorkItem]) -> PageCursor:
        cursor = PageCursor(url=self.start_url)
        seen_urls: set[str] = set()
        logger.info("Старт обхода каталога", extra={"url": cursor.url})
        try:
            while True:
                next_url = await self._crawl_page(cursor, sender, seen_urls)
                if next_url is None:
                    break
                cursor.url = next_url
                await jitter_sleep(self.delay)
        finally:
            await sender.aclose()
        logger.info(
            "Обход каталога завершён: страниц=%s, товаров=%s",
            cursor.pages_visited,
            cursor.items_emitted,
        )
        return cursor

    async def _crawl_page(
        self,
        cursor: PageCursor,
        sender: ChannelSender[WorkItem],
        seen_urls: set[str],
    ) -> str | None:
        """Обрабатывает одну страницу; возвращает URL следующей или None для остановки."""
        try:
            html = await self.fetcher.fetch(cursor.url)
        except FetchError as exc:
            logger.error(
                "Страница каталога не загружена, обход остановлен",
                extra={"url": cursor.url, "error": str(exc)},
            )
            return None
        try:
            doc = parse_document(html)
            if cursor.pages_visited == 0:
                self._log_total(doc)
            next_ref, items = self.extractor.list_page(doc)
        except Exception:
            logger.exception(
                "Не удалось разобрать страницу каталога, обход остановлен",
                extra={"url": cursor.url},
            )
            return None
        cursor.pages_visited += 1
        logger.debug(
            "Страница каталога #%s: найдено %s товаров",
            cursor.pages_visited,
            len(items),
            extra={"url": cursor.url},
        )

        for item in items:
            if self._limit_reached(cursor):
                break
            source_url = resolve_url(item.source_url, self.extractor.base_url)
            if source_url in seen_urls:
                logger.debug("Повтор ссылки пропущен", extra={"url": source_url})
                continue
            seen_urls.add(source_url)
            await sender.send(replace(item, source_url=source_url))
            cursor.items_emitted += 1

        if self._limit_reached(cursor):
            logger.info(
                "Достигнут лимит товаров, обход остановлен",
                extra={"limit": self.item_limit},
            )
            return None
        if not next_ref:
            return None
        if self.max_pages and cursor.pages_visited >= self.max_pages:
            logger.info(
                "Достигнут лимит страниц, обход остановлен",
                extra={"max_pages": self.max_pages},
            )
            return None
        return resolve_url(next_ref, cursor.url)

    def _limit_reached(self, cursor: PageCursor) -> bool:
        return bool(self.item_limit and cursor.items_emitted >= self.item_limit)

    def _log_total(self, doc) -> None:
        total = self.extractor.total_count(doc)
        if total is not None:
            logger.info("Каталог сообщает о %s товарах", total)
