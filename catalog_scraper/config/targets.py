from __future__ import annotations

from enum import Enum


class ScrapeTarget(str, Enum):
    """Сайты, для которых есть извлекатель данных."""

    ULTA = "ulta"
