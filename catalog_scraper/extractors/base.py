from __future__ import annotations

from typing import Callable, Protocol, Sequence

from bs4 import BeautifulSoup

from catalog_scraper.config.targets import ScrapeTarget
from catalog_scraper.crawler.models import ProductRecord, WorkItem


class ProductExtractor(Protocol):
    """Правила извлечения данных для одного сайта.

    Реализация не хранит состояния и не ходит в сеть: она получает уже
    разобранный документ и возвращает данные. Конвейер вызывает только
    методы этого протокола и ничего не знает о разметке сайта.
    """

    target: ScrapeTarget
    base_url: str

    def first_page(self) -> str: ...

    def list_page(self, doc: BeautifulSoup) -> tuple[str | None, Sequence[WorkItem]]:
        """Ссылка на следующую страницу каталога (или None) и товары в порядке документа."""
        ...

    def detail_page(self, doc: BeautifulSoup, source_url: str) -> ProductRecord:
        """Запись товара; не найденные поля остаются None, медиа без повторов."""
        ...

    def total_count(self, doc: BeautifulSoup) -> int | None:
        """Число товаров, объявленное страницей каталога, если сайт его показывает."""
        ...


ExtractorFactory = Callable[[], ProductExtractor]

_REGISTRY: dict[ScrapeTarget, ExtractorFactory] = {}


def register_extractor(target: ScrapeTarget) -> Callable[[type], type]:
    def decorator(cls: type) -> type:
        _REGISTRY[target] = cls
        return cls

    return decorator


def create_extractor(target: ScrapeTarget) -> ProductExtractor:
    try:
        factory = _REGISTRY[target]
    except KeyError as exc:
        raise ValueError(f"Для сайта {target!r} нет извлекателя") from exc
    return factory()


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")
