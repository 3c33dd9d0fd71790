from __future__ import annotations

import asyncio
import random
from urllib.parse import urldefrag, urljoin

from catalog_scraper.config.models import DelayConfig, NetworkConfig


def resolve_url(raw_url: str, base_url: str | None) -> str:
    """Возвращает абсолютный URL без фрагмента.

    Относительные ссылки разрешаются относительно ``base_url``.
    """
    absolute = urljoin(base_url or "", raw_url.strip())
    absolute, _ = urldefrag(absolute)
    return absolute


def pick_user_agent(network: NetworkConfig) -> str:
    return random.choice(network.user_agents)


async def jitter_sleep(delay: DelayConfig) -> None:
    if delay.max_sec <= 0:
        return
    await asyncio.sleep(random.uniform(delay.min_sec, delay.max_sec))
