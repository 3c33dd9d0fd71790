from __future__ import annotations

import itertools
import time
from dataclasses import replace
from typing import Callable

from catalog_scraper.config.models import DelayConfig
from catalog_scraper.crawler.channel import Channel, ChannelSender
from catalog_scraper.crawler.models import ItemResult, ProductRecord, WorkItem
from catalog_scraper.crawler.utils import jitter_sleep
from catalog_scraper.extractors.base import ProductExtractor, parse_document
from catalog_scraper.logger import get_logger
from catalog_scraper.media.downloader import MediaDownloader
from catalog_scraper.network.fetcher import FetchError, PageFetcher

logger = get_logger(__name__)

_HINT_FIELDS = ("title", "description")


class IdentifierFactory:
    """Идентификаторы для товаров, у которых сайт не указал артикул.

    Вид ``<миллисекунды>-<номер>``: номер растёт в пределах запуска, поэтому
    два товара без артикула не получат одинаковое имя файла даже в одну
    миллисекунду.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._sequence = itertools.count(1)

    def next_id(self) -> str:
        return f"{int(self._clock() * 1000)}-{next(self._sequence)}"


class ProductWorker:
    """Воркер: загрузка карточки, извлечение, медиа, отправка результата."""

    def __init__(
        self,
        name: str,
        fetcher: PageFetcher,
        extractor: ProductExtractor,
        *,
        ids: IdentifierFactory,
        delay: DelayConfig,
        media: MediaDownloader | None = None,
    ):
        self.name = name
        self.fetcher = fetcher
        self.extractor = extractor
        self.ids = ids
        self.delay = delay
        self.media = media

    async def run(
        self, items: Channel[WorkItem], results: ChannelSender[ItemResult]
    ) -> int:
        """Разбирает очередь до её закрытия; возвращает число обработанных товаров."""
        processed = 0
        try:
            async for item in items:
                result = await self.process(item)
                await results.send(result)
                processed += 1
                await jitter_sleep(self.delay)
        finally:
            await results.aclose()
        logger.debug("Воркер %s завершён, товаров: %s", self.name, processed)
        return processed

    async def process(self, item: WorkItem) -> ItemResult:
        try:
            html = await self.fetcher.fetch(item.source_url)
        except FetchError as exc:
            logger.warning(
                "Карточка товара не загружена",
                extra={"worker": self.name, "url": item.source_url, "error": str(exc)},
            )
            return ItemResult.failure(item, str(exc))
        try:
            record = self.extractor.detail_page(parse_document(html), item.source_url)
        except Exception as exc:
            logger.exception(
                "Ошибка извлечения данных товара",
                extra={"worker": self.name, "url": item.source_url},
            )
            return ItemResult.failure(item, f"{type(exc).__name__}: {exc}")

        record = self._complete(record, item)
        media_errors: list[str] = []
        if self.media is not None and record.media_urls:
            saved, media_errors = await self.media.download_all(record.id, record.media_urls)
            record = replace(record, media=tuple(saved))
        return ItemResult.success(item, record, tuple(media_errors))

    def _complete(self, record: ProductRecord, item: WorkItem) -> ProductRecord:
        fields = dict(record.fields)
        for name in _HINT_FIELDS:
            hint = getattr(item, name)
            if hint and not fields.get(name):
                fields[name] = hint
        record_id = record.id or item.id or self.ids.next_id()
        return replace(record, id=record_id, fields=fields, media=())
