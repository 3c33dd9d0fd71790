from __future__ import annotations

import hashlib
import os
import uuid
from functools import partial
from pathlib import Path

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from catalog_scraper.config.models import NetworkConfig
from catalog_scraper.crawler.utils import pick_user_agent
from catalog_scraper.logger import get_logger
from catalog_scraper.monitoring import build_error_event

logger = get_logger(__name__)


class FetchError(Exception):
    """Базовая ошибка загрузки."""


class FetchExhaustedError(FetchError):
    """Все попытки загрузить страницу завершились транспортной ошибкой."""

    def __init__(self, url: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Не удалось загрузить {url} за {attempts} попыт(ок): {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class MediaDownloadError(FetchError):
    """Файл медиа не скачан (одна попытка)."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Не удалось скачать {url}: {cause}")
        self.url = url
        self.cause = cause


class PageFetcher:
    """Загружает HTML страниц с повторами и скачивает медиа в файлы.

    Объект не хранит состояния между запросами и безопасно разделяется
    между всеми задачами одного запуска.
    """

    def __init__(self, client: httpx.AsyncClient, network: NetworkConfig) -> None:
        self._client = client
        self.network = network
        self.max_tries = network.max_tries

    async def fetch(self, url: str) -> str:
        """Возвращает тело первого полученного ответа.

        По умолчанию код ответа не проверяется: страница 404 тоже считается
        телом для разбора. При ``fail_on_error_status`` ответ не 2xx
        считается неудачной попыткой.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_tries),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=partial(self._log_retry, url),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._client.get(url, headers=self._headers())
                    if self.network.fail_on_error_status:
                        response.raise_for_status()
                    logger.debug(
                        "HTTP fetch url=%s status=%s attempt=%s",
                        url,
                        response.status_code,
                        attempt.retry_state.attempt_number,
                    )
                    return response.text
        except httpx.HTTPError as exc:
            event = build_error_event(
                error_source="catalog_scraper.network.fetcher",
                exc=exc,
                url=url,
                retry_index=self.max_tries,
                action_required=["increase_tries", "add_delay"],
            )
            logger.error(
                "Попытки загрузки исчерпаны",
                extra={"url": url, "error_event": event},
            )
            raise FetchExhaustedError(url, self.max_tries, exc) from exc
        raise AssertionError("AsyncRetrying завершился без результата")

    def _log_retry(self, url: str, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Ошибка загрузки, повтор",
            extra={
                "url": url,
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_tries,
                "error": str(exc),
            },
        )

    async def fetch_to_file(self, url: str, path: Path) -> Path:
        """Потоково сохраняет ответ за одну попытку и возвращает итоговый путь.

        Файл появляется под итоговым именем только после полной записи.
        Существующий файл не перезаписывается: если ``path`` уже занят,
        к имени добавляется короткий хеш URL.
        """
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.part")
        try:
            async with self._client.stream("GET", url, headers=self._headers()) as response:
                response.raise_for_status()
                with tmp_path.open("wb") as dump:
                    async for chunk in response.aiter_bytes():
                        dump.write(chunk)
            # между выбором имени и переименованием нет await
            target = _free_path(path, url)
            os.replace(tmp_path, target)
        except (httpx.HTTPError, OSError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise MediaDownloadError(url, exc) from exc
        if target != path:
            logger.warning(
                "Файл медиа уже существует, сохранено под другим именем",
                extra={"url": url, "path": str(target)},
            )
        logger.debug("Медиа сохранено url=%s path=%s", url, target)
        return target

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": pick_user_agent(self.network)}


def _free_path(path: Path, url: str) -> Path:
    if not path.exists():
        return path
    suffix = hashlib.md5(url.encode(), usedforsecurity=False).hexdigest()[:6]
    candidate = path.with_name(f"{path.stem}-{suffix}{path.suffix}")
    index = 2
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}-{suffix}-{index}{path.suffix}")
        index += 1
    return candidate
