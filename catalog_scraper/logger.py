import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# httpx пишет каждый запрос на INFO, при десятках воркеров это шум
_NOISY_LOGGERS = ("httpx", "httpcore")

_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_configured = False
_file_sinks: set[Path] = set()


class ContextFormatter(logging.Formatter):
    """Дописывает к сообщению поля, переданные через ``extra=``.

    Конвейер кладёт туда url, имя воркера и ``error_event``; без этого
    форматтера они терялись бы в журнале.
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, *, markup: bool = False):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.markup = markup

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = record_context(record)
        if not context:
            return message
        rendered = json.dumps(context, ensure_ascii=False, default=str)
        if self.markup:
            rendered = escape(rendered)
        return f"{message} | {rendered}"


def record_context(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def configure_logging(level: LogLevel = "INFO", log_file: Optional[Path] = None) -> None:
    """Настраивает цветной логгер один раз за запуск.

    Файл журнала берётся из ``log_file`` либо из ``LOG_FILE_PATH``; его можно
    подключить и после первой настройки (например, из параметров CLI).
    """
    global _configured
    if not _configured:
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=True)
        handler.setFormatter(ContextFormatter("%(message)s", datefmt="[%X]", markup=True))
        logging.basicConfig(level=level, handlers=[handler])
        _configured = True
    else:
        logging.getLogger().setLevel(level)
    sink = log_file or os.getenv("LOG_FILE_PATH")
    if sink:
        _attach_file_handler(Path(sink).expanduser())
    noisy_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Возвращает готовый логгер модуля."""
    configure_logging()
    return logging.getLogger(name)


def _attach_file_handler(log_path: Path) -> None:
    if log_path in _file_sinks:
        return
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        Console(stderr=True).print(
            f"[yellow]Не удалось открыть файл журнала '{escape(str(log_path))}': {exc}[/yellow]"
        )
        return
    handler.setFormatter(
        ContextFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.getLogger().addHandler(handler)
    _file_sinks.add(log_path)
