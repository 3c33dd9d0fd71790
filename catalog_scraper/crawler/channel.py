from __future__ import annotations

import asyncio
from typing import AsyncIterator, Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    pass


class Channel(Generic[T]):
    """Очередь asyncio с закрытием со стороны отправителей.

    Отправители регистрируются через :meth:`sender` до запуска задач; канал
    закрывается, когда освобождён последний зарегистрированный отправитель.
    Закрытие видят все получатели: после выборки оставшихся элементов
    ``receive`` бросает :class:`ChannelClosedError`, а ``async for`` завершается.

    ``maxsize=0`` означает неограниченную очередь; при ограниченной очереди
    ``send`` ждёт свободного места.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._senders = 0
        self._closed = False
        self._close_pending = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def sender(self) -> "ChannelSender[T]":
        if self._closed:
            raise ChannelClosedError("Канал уже закрыт")
        self._senders += 1
        return ChannelSender(self)

    async def receive(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            # маркер остаётся в очереди для остальных получателей
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError("Канал закрыт")
        if self._close_pending:
            self._close_pending = False
            self._queue.put_nowait(_CLOSED)
        return item

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            try:
                yield await self.receive()
            except ChannelClosedError:
                return

    async def _put(self, item: T) -> None:
        if self._closed:
            raise ChannelClosedError("Отправка в закрытый канал")
        await self._queue.put(item)

    def _release(self) -> None:
        self._senders -= 1
        if self._senders > 0 or self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # маркер встанет в очередь, как только получатель освободит место
            self._close_pending = True


class ChannelSender(Generic[T]):
    """Дескриптор отправителя; освобождается один раз через ``aclose``."""

    def __init__(self, channel: Channel[T]) -> None:
        self._channel = channel
        self._released = False

    async def send(self, item: T) -> None:
        if self._released:
            raise ChannelClosedError("Отправитель уже освобождён")
        await self._channel._put(item)

    async def aclose(self) -> None:
        if self._released:
            return
        self._released = True
        self._channel._release()

    async def __aenter__(self) -> "ChannelSender[T]":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
