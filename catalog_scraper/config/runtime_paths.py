from __future__ import annotations

import os
from pathlib import Path

LOCAL_ENV = "local"
DOCKER_ENV = "docker"


def get_run_env() -> str:
    value = (os.getenv("APP_RUN_ENV") or "").strip().lower()
    if value in {LOCAL_ENV, DOCKER_ENV}:
        return value
    # Внутри контейнера всегда есть служебный /.dockerenv.
    if Path("/.dockerenv").exists() or os.getenv("DOCKER_CONTAINER"):
        return DOCKER_ENV
    return LOCAL_ENV


def resolve_path(
    env_name: str,
    *,
    local_default: str,
    docker_default: str,
) -> Path:
    """Путь из переменной окружения либо значение по умолчанию для окружения запуска."""
    value = (os.getenv(env_name) or "").strip()
    if value:
        return Path(value).expanduser()
    return Path(docker_default if get_run_env() == DOCKER_ENV else local_default)
