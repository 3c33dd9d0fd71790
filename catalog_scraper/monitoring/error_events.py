from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


Action = str | Iterable[str]


@dataclass(slots=True)
class ErrorEvent:
    """Структурированное описание ошибки конвейера для разбора по журналу."""

    error_type: str
    error_source: str
    url: str | None = None
    path: str | None = None
    retry_index: int | None = None
    action_required: Action | None = None
    causes: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error_type": self.error_type,
            "error_source": self.error_source,
            "timestamp": _now_iso(),
        }
        if self.url:
            payload["url"] = self.url
        if self.path:
            payload["path"] = self.path
        if self.retry_index is not None:
            payload["retry_index"] = self.retry_index
        if self.action_required:
            if isinstance(self.action_required, str):
                payload["action_required"] = self.action_required
            else:
                payload["action_required"] = list(self.action_required)
        if self.causes:
            payload["causes"] = list(self.causes)
        if self.metadata:
            payload["details"] = self.metadata
        return payload


def exception_chain(exc: BaseException, limit: int = 5) -> list[str]:
    """Цепочка ``__cause__``/``__context__`` в виде строк ``Тип: сообщение``."""
    chain: list[str] = []
    current: BaseException | None = exc
    while current is not None and len(chain) < limit:
        chain.append(f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return chain


def build_error_event(
    *,
    error_source: str,
    error_type: str | None = None,
    exc: BaseException | None = None,
    url: str | None = None,
    path: str | None = None,
    retry_index: int | None = None,
    action_required: Action | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Фабрика словаря события; тип ошибки берётся из ``exc``, если не задан."""
    if error_type is None:
        error_type = type(exc).__name__ if exc is not None else "UnknownError"
    event = ErrorEvent(
        error_type=error_type,
        error_source=error_source,
        url=url,
        path=path,
        retry_index=retry_index,
        action_required=action_required,
        causes=exception_chain(exc) if exc is not None else [],
        metadata=metadata or {},
    )
    return event.to_dict()
