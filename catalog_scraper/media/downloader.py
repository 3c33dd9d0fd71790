from __future__ import annotations

from pathlib import Path
from typing import Sequence

from catalog_scraper.logger import get_logger
from catalog_scraper.media.naming import media_filename
from catalog_scraper.monitoring import build_error_event
from catalog_scraper.network.fetcher import MediaDownloadError, PageFetcher

logger = get_logger(__name__)


class MediaDownloader:
    """Скачивает медиа товара в каталог ``<media>/<id>_<index>.<ext>``."""

    def __init__(self, fetcher: PageFetcher, media_dir: Path):
        self.fetcher = fetcher
        self.media_dir = media_dir

    async def download_all(
        self, record_id: str, urls: Sequence[str]
    ) -> tuple[list[str], list[str]]:
        """Возвращает имена скачанных файлов и тексты ошибок.

        Порядок имён совпадает с порядком попыток; ошибка одного файла не
        прерывает остальные. Если имя уже занято другим товаром, файл
        сохраняется под именем с хешем URL.
        """
        saved: list[str] = []
        errors: list[str] = []
        for index, url in enumerate(urls, start=1):
            filename = media_filename(record_id, index, url)
            try:
                path = await self.fetcher.fetch_to_file(url, self.media_dir / filename)
            except MediaDownloadError as exc:
                event = build_error_event(
                    error_source="catalog_scraper.media.downloader",
                    exc=exc.cause,
                    url=url,
                    path=str(self.media_dir / filename),
                )
                logger.warning(
                    "Не удалось скачать медиа товара",
                    extra={"record_id": record_id, "url": url, "error_event": event},
                )
                errors.append(str(exc))
                continue
            saved.append(path.name)
        if saved:
            logger.debug(
                "Скачано медиа: %s из %s",
                len(saved),
                len(urls),
                extra={"record_id": record_id},
            )
        return saved, errors
