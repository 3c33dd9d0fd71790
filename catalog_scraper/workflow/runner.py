from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from rich.console import Console

from catalog_scraper.config.errors import ConfigLoaderError
from catalog_scraper.config.loader import apply_overrides, load_global_config
from catalog_scraper.crawler.models import RunTally
from catalog_scraper.crawler.service import CrawlService
from catalog_scraper.logger import get_logger
from catalog_scraper.runtime import RuntimeContext

console = Console()
logger = get_logger(__name__)


@dataclass(slots=True)
class RunnerOptions:
    config_path: Path | None = None
    run_id: str | None = None
    overrides: dict[str, Any] = field(default_factory=dict)


class ScrapeRunner:
    """Высокоуровневый раннер: конфигурация, каталоги, запуск конвейера, итог."""

    def __init__(self) -> None:
        self.latest_tally: RunTally | None = None

    def run(self, options: RunnerOptions) -> RunTally:
        load_dotenv()
        run_id = options.run_id or str(uuid.uuid4())
        try:
            config = load_global_config(options.config_path)
            config = apply_overrides(config, options.overrides)
        except ConfigLoaderError as exc:
            console.print(f"[bold red]Ошибка конфигурации:[/bold red] {exc}")
            raise

        context = RuntimeContext(
            run_id=run_id,
            started_at=datetime.now(timezone.utc),
            config=config,
        )
        context.prepare_dirs()
        logger.info(
            "Запуск сборщика",
            extra={
                "run_id": run_id,
                "config": str(options.config_path) if options.config_path else "env",
                "output": str(config.target_dir()),
            },
        )
        console.print(
            f"[yellow]Контекст подготовлен[/yellow]: сайт={context.target.value}, "
            f"воркеров={config.runtime.jobs}, попыток={config.network.max_tries}, "
            f"каталог={config.target_dir()}"
        )
        self.latest_tally = asyncio.run(CrawlService(context).collect())
        self._report(self.latest_tally)
        return self.latest_tally

    @staticmethod
    def _report(tally: RunTally) -> None:
        elapsed = tally.elapsed_sec or 0.0
        console.print(
            f"[green]Сбор завершён[/green] за {elapsed:.1f} с: "
            f"успешно={tally.succeeded}, ошибок={tally.failed}, "
            f"медиа={tally.media_downloaded}"
        )
        if tally.media_failed:
            console.print(f"[yellow]Не скачано медиа[/yellow]: {tally.media_failed}")
        if tally.duplicates:
            console.print(f"[yellow]Дубликаты идентификаторов[/yellow]: {tally.duplicates}")
