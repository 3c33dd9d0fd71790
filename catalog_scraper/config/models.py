from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, PositiveInt, field_validator, model_validator

from catalog_scraper.config.targets import ScrapeTarget

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _default_user_agents() -> list[str]:
    return [DEFAULT_USER_AGENT]


class DelayConfig(BaseModel):
    """Пауза между запросами одного исполнителя (краулера или воркера)."""

    min_sec: float = Field(default=0.0, ge=0)
    max_sec: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _ensure_bounds(self) -> "DelayConfig":
        if self.max_sec < self.min_sec:
            msg = "max_sec должен быть не меньше min_sec"
            raise ValueError(msg)
        return self

    @classmethod
    def fixed(cls, seconds: float) -> "DelayConfig":
        return cls(min_sec=seconds, max_sec=seconds)


class NetworkConfig(BaseModel):
    """Сетевые настройки загрузчика."""

    user_agents: list[str] = Field(default_factory=_default_user_agents)
    accept_language: str | None = None
    request_timeout_sec: float = Field(default=30, gt=0)
    max_tries: PositiveInt = Field(default=3, le=20)
    fail_on_error_status: bool = False

    @field_validator("user_agents")
    @classmethod
    def _ensure_user_agents(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "Нужно указать минимум один User-Agent"
            raise ValueError(msg)
        return value


class RuntimeConfig(BaseModel):
    """Параметры конвейера: число воркеров, лимиты и паузы."""

    jobs: PositiveInt = Field(default=4, le=64)
    delay: DelayConfig = Field(default_factory=DelayConfig)
    item_limit: PositiveInt | None = None
    max_pages: PositiveInt | None = None
    queue_maxsize: int = Field(default=0, ge=0)
    progress_every: PositiveInt = 10
    download_media: bool = True


class OutputConfig(BaseModel):
    """Куда и под какими именами складываются результаты."""

    root: Path = Path("output")
    records_dirname: str = "products"
    media_dirname: str = "images"

    @field_validator("records_dirname", "media_dirname")
    @classmethod
    def _ensure_plain_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value or value in {".", ".."}:
            msg = "Имя каталога должно быть непустым и без разделителей пути"
            raise ValueError(msg)
        return value


class GlobalConfig(BaseModel):
    target: ScrapeTarget = ScrapeTarget.ULTA
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def target_dir(self) -> Path:
        return self.output.root / self.target.value

    def records_dir(self) -> Path:
        return self.target_dir() / self.output.records_dirname

    def media_dir(self) -> Path:
        return self.target_dir() / self.output.media_dirname
