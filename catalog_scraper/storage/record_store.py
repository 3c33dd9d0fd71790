from __future__ import annotations

import json
import os
from pathlib import Path

from catalog_scraper.crawler.models import ProductRecord
from catalog_scraper.logger import get_logger
from catalog_scraper.media.naming import safe_stem

logger = get_logger(__name__)


class PersistenceError(RuntimeError):
    """Запись не удалось сохранить; продолжать запуск нет смысла."""


class RecordStore:
    """JSON-файлы товаров в каталоге ``<records>/<id>.json``.

    Каждый файл пишется один раз: сначала во временный файл рядом, затем
    атомарно переименовывается. Существующий файл не перезаписывается.
    Хранилище рассчитано на одного писателя (агрегатор результатов).
    """

    suffix = ".json"

    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, record_id: str) -> Path:
        return self.directory / f"{safe_stem(record_id)}{self.suffix}"

    def save(self, record: ProductRecord) -> Path | None:
        """Сохраняет запись и возвращает путь; ``None``, если id уже занят."""
        if not record.id:
            raise PersistenceError(f"У записи {record.source_url} нет идентификатора")
        path = self.path_for(record.id)
        if path.exists():
            logger.warning(
                "Запись с таким идентификатором уже сохранена, дубликат пропущен",
                extra={"id": record.id, "path": str(path), "url": record.source_url},
            )
            return None
        tmp_path = path.with_name(f".{path.name}.tmp")
        payload = json.dumps(record.to_dict(), ensure_ascii=False, indent=2)
        try:
            with tmp_path.open("w", encoding="utf-8") as dump:
                dump.write(payload)
                dump.write("\n")
                dump.flush()
                os.fsync(dump.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Не удалось записать {path}: {exc}") from exc
        return path

    def load(self, record_id: str) -> dict:
        return json.loads(self.path_for(record_id).read_text(encoding="utf-8"))
