from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from catalog_scraper.config.models import GlobalConfig
from catalog_scraper.config.targets import ScrapeTarget


@dataclass(slots=True)
class RuntimeContext:
    """Общий контекст выполнения для всего запуска."""

    run_id: str
    started_at: datetime
    config: GlobalConfig

    @property
    def target(self) -> ScrapeTarget:
        return self.config.target

    @property
    def records_dir(self) -> Path:
        return self.config.records_dir()

    @property
    def media_dir(self) -> Path:
        return self.config.media_dir()

    def prepare_dirs(self) -> None:
        self.records_dir.mkdir(parents=True, exist_ok=True)
        if self.config.runtime.download_media:
            self.media_dir.mkdir(parents=True, exist_ok=True)
