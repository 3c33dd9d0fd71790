"""Пакет конфигураций (модели и загрузчик)."""

from .errors import ConfigLoaderError
from .models import (
    DelayConfig,
    GlobalConfig,
    NetworkConfig,
    OutputConfig,
    RuntimeConfig,
)
from .targets import ScrapeTarget

__all__ = [
    "ConfigLoaderError",
    "DelayConfig",
    "GlobalConfig",
    "NetworkConfig",
    "OutputConfig",
    "RuntimeConfig",
    "ScrapeTarget",
]
