from __future__ import annotations

import asyncio
import time

from catalog_scraper.crawler.aggregator import ResultAggregator
from catalog_scraper.crawler.channel import Channel
from catalog_scraper.crawler.models import ItemResult, RunTally, WorkItem
from catalog_scraper.crawler.page_crawler import PageCrawler
from catalog_scraper.crawler.worker import IdentifierFactory, ProductWorker
from catalog_scraper.extractors.base import ProductExtractor, create_extractor
from catalog_scraper.logger import get_logger
from catalog_scraper.media.downloader import MediaDownloader
from catalog_scraper.network.fetcher import PageFetcher
from catalog_scraper.network.http_client_factory import HttpClientFactory
from catalog_scraper.runtime import RuntimeContext
from catalog_scraper.storage.record_store import RecordStore

logger = get_logger(__name__)


class CrawlService:
    """Оркестровка запуска: краулер, пул воркеров и агрегатор результатов.

    Канал задач закрывает краулер, канал результатов закрывается, когда
    завершился последний воркер. Итог запуска возвращает агрегатор после
    закрытия канала результатов.
    """

    def __init__(
        self,
        context: RuntimeContext,
        *,
        fetcher: PageFetcher | None = None,
        extractor: ProductExtractor | None = None,
    ):
        self.context = context
        self._fetcher = fetcher
        self.extractor = extractor or create_extractor(context.target)

    async def collect(self) -> RunTally:
        if self._fetcher is not None:
            return await self._collect(self._fetcher)
        factory = HttpClientFactory.from_network(self.context.config.network)
        try:
            return await self._collect(PageFetcher(factory.get(), self.context.config.network))
        finally:
            await factory.aclose()

    async def _collect(self, fetcher: PageFetcher) -> RunTally:
        runtime = self.context.config.runtime
        started = time.monotonic()

        work: Channel[WorkItem] = Channel(maxsize=runtime.queue_maxsize)
        results: Channel[ItemResult] = Channel()
        # все отправители регистрируются до старта задач
        work_sender = work.sender()
        result_senders = [results.sender() for _ in range(runtime.jobs)]

        crawler = PageCrawler(
            fetcher,
            self.extractor,
            delay=runtime.delay,
            item_limit=runtime.item_limit,
            max_pages=runtime.max_pages,
        )
        media = (
            MediaDownloader(fetcher, self.context.media_dir)
            if runtime.download_media
            else None
        )
        ids = IdentifierFactory()
        workers = [
            ProductWorker(
                f"worker-{index}",
                fetcher,
                self.extractor,
                ids=ids,
                delay=runtime.delay,
                media=media,
            )
            for index in range(1, runtime.jobs + 1)
        ]
        aggregator = ResultAggregator(
            RecordStore(self.context.records_dir),
            progress_every=runtime.progress_every,
            media_dir=self.context.media_dir if runtime.download_media else None,
        )

        logger.info(
            "Запуск конвейера",
            extra={
                "run_id": self.context.run_id,
                "target": self.context.target.value,
                "jobs": runtime.jobs,
                "tries": fetcher.max_tries,
            },
        )
        tasks = [asyncio.create_task(crawler.run(work_sender), name="page-crawler")]
        tasks.extend(
            asyncio.create_task(worker.run(work, sender), name=worker.name)
            for worker, sender in zip(workers, result_senders)
        )
        aggregator_task = asyncio.create_task(aggregator.run(results), name="aggregator")
        tasks.append(aggregator_task)
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        tally = aggregator_task.result()
        tally.elapsed_sec = time.monotonic() - started
        return tally
