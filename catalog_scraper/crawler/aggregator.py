from __future__ import annotations

import asyncio
from pathlib import Path

from catalog_scraper.crawler.channel import Channel
from catalog_scraper.crawler.models import ItemResult, RunTally
from catalog_scraper.logger import get_logger
from catalog_scraper.monitoring import build_error_event
from catalog_scraper.storage.record_store import PersistenceError, RecordStore

logger = get_logger(__name__)


class ResultAggregator:
    """Единственный потребитель результатов: сохраняет записи и ведёт счётчики."""

    def __init__(
        self,
        store: RecordStore,
        *,
        progress_every: int = 10,
        media_dir: Path | None = None,
    ):
        self.store = store
        self.media_dir = media_dir
        self.progress_every = max(1, progress_every)

    async def run(self, results: Channel[ItemResult]) -> RunTally:
        tally = RunTally()
        async for result in results:
            await self._consume(result, tally)
            if tally.processed % self.progress_every == 0:
                self._log_progress(tally)
        logger.info(
            "Все результаты получены: успешно=%s, ошибок=%s, медиа=%s",
            tally.succeeded,
            tally.failed,
            tally.media_downloaded,
        )
        return tally

    async def _consume(self, result: ItemResult, tally: RunTally) -> None:
        if result.record is None:
            tally.failed += 1
            logger.debug(
                "Товар не обработан",
                extra={"url": result.item.source_url, "error": result.error},
            )
            return
        try:
            # запись в файл целиком до перехода к следующему результату
            path = await asyncio.to_thread(self.store.save, result.record)
        except PersistenceError as exc:
            event = build_error_event(
                error_source="catalog_scraper.crawler.aggregator",
                exc=exc,
                url=result.record.source_url,
                path=str(self.store.directory),
                action_required="check_output_dir",
            )
            logger.error(
                "Не удалось сохранить запись, запуск остановлен",
                extra={"error_event": event},
            )
            raise
        tally.succeeded += 1
        if path is None:
            tally.duplicates += 1
            self._discard_media(result.record.media)
            return
        tally.media_downloaded += len(result.record.media)
        tally.media_failed += len(result.media_errors)

    def _log_progress(self, tally: RunTally) -> None:
        logger.info(
            "Обработано %s: успешно=%s, ошибок=%s, медиа=%s",
            tally.processed,
            tally.succeeded,
            tally.failed,
            tally.media_downloaded,
        )

    def _discard_media(self, names: tuple[str, ...]) -> None:
        # файлы дубликата ни на что не ссылаются
        if self.media_dir is None:
            return
        for name in names:
            try:
                (self.media_dir / name).unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(
                    "Не удалось удалить медиа дубликата",
                    extra={"path": str(self.media_dir / name), "error": str(exc)},
                )
