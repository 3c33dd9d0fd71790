from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from catalog_scraper.config.targets import ScrapeTarget
from catalog_scraper.logger import configure_logging, get_logger
from catalog_scraper.workflow.runner import RunnerOptions, ScrapeRunner

console = Console()
cli = typer.Typer(help="Сборщик карточек товаров из каталогов интернет-магазинов.")
logger = get_logger(__name__)


def _build_overrides(
    *,
    target: Optional[ScrapeTarget],
    output: Optional[Path],
    jobs: Optional[int],
    tries: Optional[int],
    delay: Optional[float],
    limit: Optional[int],
    max_pages: Optional[int],
    queue_size: Optional[int],
    fail_on_error_status: Optional[bool],
    no_media: bool,
) -> dict:
    overrides: dict = {
        "target": target,
        "output.root": output,
        "runtime.jobs": jobs,
        "network.max_tries": tries,
        "runtime.item_limit": limit,
        "runtime.max_pages": max_pages,
        "runtime.queue_maxsize": queue_size,
        "network.fail_on_error_status": fail_on_error_status,
    }
    if delay is not None:
        overrides["runtime.delay"] = {"min_sec": delay, "max_sec": delay}
    if no_media:
        overrides["runtime.download_media"] = False
    return overrides


@cli.command("run")
def run_scraper(
    target: Optional[ScrapeTarget] = typer.Option(
        None,
        "--target",
        "-t",
        case_sensitive=False,
        help="Какой сайт собирать.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        file_okay=False,
        dir_okay=True,
        help="Корневой каталог результатов (по умолчанию OUTPUT_DIR или ./output).",
    ),
    jobs: Optional[int] = typer.Option(
        None, "--jobs", "-j", min=1, help="Число параллельных воркеров."
    ),
    tries: Optional[int] = typer.Option(
        None, "--tries", min=1, help="Число попыток загрузки страницы."
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        "-d",
        min=0.0,
        help="Пауза в секундах между запросами каждого исполнителя.",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", min=1, help="Максимум товаров за запуск."
    ),
    max_pages: Optional[int] = typer.Option(
        None, "--max-pages", min=1, help="Максимум страниц каталога."
    ),
    queue_size: Optional[int] = typer.Option(
        None,
        "--queue-size",
        min=0,
        help="Размер очереди задач (0 = без ограничения).",
    ),
    fail_on_error_status: Optional[bool] = typer.Option(
        None,
        "--fail-on-error-status/--accept-error-status",
        help="Считать ответы не 2xx ошибкой загрузки.",
    ),
    no_media: bool = typer.Option(
        False, "--no-media", help="Не скачивать изображения товаров."
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        envvar="SCRAPER_CONFIG_PATH",
        help="Путь к конфигурации запуска (YAML/JSON). "
        "Если не указан, используется конфигурация из переменных окружения.",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        envvar="LOG_LEVEL",
        help="Уровень логирования (DEBUG/INFO/WARNING/ERROR/CRITICAL).",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        help="Дублировать журнал в файл (по умолчанию LOG_FILE_PATH).",
    ),
    run_id: Optional[str] = typer.Option(
        None,
        "--run-id",
        help="Идентификатор запуска (по умолчанию генерируется UUID4).",
    ),
) -> None:
    """Единичный запуск: обход каталога, карточки товаров, медиа."""
    configure_logging(log_level.upper(), log_file)  # type: ignore[arg-type]
    options = RunnerOptions(
        config_path=config_path,
        run_id=run_id,
        overrides=_build_overrides(
            target=target,
            output=output,
            jobs=jobs,
            tries=tries,
            delay=delay,
            limit=limit,
            max_pages=max_pages,
            queue_size=queue_size,
            fail_on_error_status=fail_on_error_status,
            no_media=no_media,
        ),
    )
    ScrapeRunner().run(options)


@cli.command("targets")
def list_targets() -> None:
    """Список поддерживаемых сайтов."""
    for target in ScrapeTarget:
        console.print(target.value)


def entrypoint() -> None:
    """CLI entrypoint."""
    cli()
