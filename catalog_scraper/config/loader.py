from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from catalog_scraper.config.env_loader import load_global_config_from_env
from catalog_scraper.config.errors import ConfigLoaderError
from catalog_scraper.config.models import GlobalConfig
from catalog_scraper.logger import get_logger

logger = get_logger(__name__)


def load_global_config(path: Path | None) -> GlobalConfig:
    """Загружает конфигурацию из файла (YAML/JSON) или из окружения."""
    if path:
        return _load_global_config_from_file(path)
    logger.info("Конфигурация читается из переменных окружения")
    return load_global_config_from_env()


def _load_global_config_from_file(path: Path) -> GlobalConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return GlobalConfig.model_validate(data)
    except FileNotFoundError as exc:
        raise ConfigLoaderError(f"Файл {path} не найден") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoaderError(f"Файл {path} не является YAML/JSON: {exc}") from exc
    except ValidationError as exc:
        raise ConfigLoaderError(f"Некорректная конфигурация: {exc}") from exc


def apply_overrides(config: GlobalConfig, overrides: Mapping[str, Any]) -> GlobalConfig:
    """Накладывает параметры командной строки поверх загруженной конфигурации.

    Ключи имеют вид ``"section.field"`` (например ``"runtime.jobs"``) либо
    имя поля верхнего уровня. Значения ``None`` пропускаются. Результат
    валидируется заново, чтобы ограничения моделей действовали и для CLI.
    """
    data = config.model_dump()
    for key, value in overrides.items():
        if value is None:
            continue
        section, _, field = key.rpartition(".")
        target = data[section] if section else data
        target[field] = value
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigLoaderError(f"Некорректные параметры запуска: {exc}") from exc
