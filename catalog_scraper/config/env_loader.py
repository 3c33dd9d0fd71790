from __future__ import annotations

import os
from typing import Iterable

from pydantic import ValidationError

from catalog_scraper.config.errors import ConfigLoaderError
from catalog_scraper.config.models import (
    DelayConfig,
    GlobalConfig,
    NetworkConfig,
    OutputConfig,
    RuntimeConfig,
)
from catalog_scraper.config.runtime_paths import resolve_path
from catalog_scraper.config.targets import ScrapeTarget


def load_global_config_from_env() -> GlobalConfig:
    """Строит конфигурацию запуска на основе переменных окружения."""
    network_kwargs: dict = {
        "accept_language": os.getenv("NETWORK_ACCEPT_LANGUAGE") or None,
        "request_timeout_sec": _float("NETWORK_REQUEST_TIMEOUT_SEC", default=30.0),
        "max_tries": _int("NETWORK_MAX_TRIES", default=3),
        "fail_on_error_status": _bool("NETWORK_FAIL_ON_ERROR_STATUS", default=False),
    }
    user_agents = _list("NETWORK_USER_AGENTS")
    if user_agents:
        network_kwargs["user_agents"] = user_agents

    try:
        network = NetworkConfig(**network_kwargs)
        runtime = RuntimeConfig(
            jobs=_int("RUNTIME_JOBS", default=4),
            delay=_delay_from_env(prefix="RUNTIME_DELAY"),
            item_limit=_int("RUNTIME_ITEM_LIMIT"),
            max_pages=_int("RUNTIME_MAX_PAGES"),
            queue_maxsize=_int("RUNTIME_QUEUE_MAXSIZE", default=0),
            progress_every=_int("RUNTIME_PROGRESS_EVERY", default=10),
            download_media=_bool("RUNTIME_DOWNLOAD_MEDIA", default=True),
        )
        output = OutputConfig(
            root=resolve_path(
                "OUTPUT_DIR",
                local_default="output",
                docker_default="/app/output",
            ),
        )
        return GlobalConfig(
            target=_target(),
            network=network,
            runtime=runtime,
            output=output,
        )
    except ValidationError as exc:
        raise ConfigLoaderError(f"Некорректные переменные окружения: {exc}") from exc


def _target() -> ScrapeTarget:
    value = (os.getenv("SCRAPE_TARGET") or ScrapeTarget.ULTA.value).strip().lower()
    try:
        return ScrapeTarget(value)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in ScrapeTarget)
        raise ConfigLoaderError(
            f"SCRAPE_TARGET должен быть одним из: {allowed}"
        ) from exc


def _delay_from_env(*, prefix: str) -> DelayConfig:
    # одно значение <PREFIX>_SEC задаёт фиксированную паузу
    fixed = _float(f"{prefix}_SEC")
    if fixed is not None:
        return DelayConfig.fixed(fixed)
    min_value = _float(f"{prefix}_MIN_SEC", default=0.0)
    max_value = _float(f"{prefix}_MAX_SEC", default=min_value)
    return DelayConfig(min_sec=min_value, max_sec=max_value)


def _int(name: str, default: int | None = None) -> int | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigLoaderError(f"Ожидается целое число в {name}") from exc


def _float(name: str, default: float | None = None) -> float | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigLoaderError(f"Ожидается число (float) в {name}") from exc


def _list(name: str, default: Iterable[str] | None = None) -> list[str]:
    value = os.getenv(name)
    if value is None:
        return list(default) if default is not None else []
    return [
        token.strip()
        for token in value.replace("\n", ",").split(",")
        if token.strip()
    ]


def _bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}
