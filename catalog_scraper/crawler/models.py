from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class WorkItem:
    """Ссылка на карточку товара, найденная на странице каталога."""

    source_url: str
    id: str | None = None
    title: str | None = None
    description: str | None = None


@dataclass(slots=True, frozen=True)
class ProductRecord:
    """Извлечённые данные одного товара.

    ``fields`` содержит произвольные текстовые поля извлекателя; не найденное
    поле хранится как ``None``. ``media_urls`` задаёт извлекатель, ``media``
    заполняет воркер именами успешно скачанных файлов в порядке попыток.
    """

    target: str
    source_url: str
    id: str | None = None
    fields: dict[str, str | None] = field(default_factory=dict)
    media_urls: tuple[str, ...] = ()
    media: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "target": self.target}
        for key, value in self.fields.items():
            if key not in payload:
                payload[key] = value
        payload["source_url"] = self.source_url
        payload["media_urls"] = list(self.media_urls)
        payload["media"] = list(self.media)
        return payload


@dataclass(slots=True, frozen=True)
class ItemResult:
    """Итог обработки одного WorkItem: запись либо ошибка, но не оба сразу."""

    item: WorkItem
    record: ProductRecord | None = None
    error: str | None = None
    media_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.record is None) == (self.error is None):
            raise ValueError("ItemResult содержит либо record, либо error")

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(
        cls, item: WorkItem, record: ProductRecord, media_errors: tuple[str, ...] = ()
    ) -> "ItemResult":
        return cls(item=item, record=record, media_errors=media_errors)

    @classmethod
    def failure(cls, item: WorkItem, error: str) -> "ItemResult":
        return cls(item=item, error=error)


@dataclass(slots=True)
class PageCursor:
    url: str
    pages_visited: int = 0
    items_emitted: int = 0


@dataclass(slots=True)
class RunTally:
    succeeded: int = 0
    failed: int = 0
    media_downloaded: int = 0
    media_failed: int = 0
    duplicates: int = 0
    elapsed_sec: float | None = None

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed
