from __future__ import annotations

from typing import Any, Iterable
from urllib.parse import urljoin

from bs4 import BeautifulSoup


def element_text(soup: Any, selector: str, separator: str = "\n") -> str | None:
    """Текст всех узлов по селектору, склеенный через ``separator``.

    Пустой результат возвращается как ``None``.
    """
    parts = [
        node.get_text(" ", strip=True)
        for node in soup.select(selector)
    ]
    value = separator.join(part for part in parts if part)
    return value or None


def first_text(soup: Any, selectors: str | Iterable[str]) -> str | None:
    if isinstance(selectors, str):
        selectors = [selectors]
    for css in selectors:
        if not css:
            continue
        node = soup.select_one(css)
        if not node:
            continue
        text = node.get_text(" ", strip=True)
        if text:
            return text
    return None


def attr_url(node: Any, attr: str, base_url: str) -> str | None:
    value = node.get(attr) if node is not None else None
    if not value:
        return None
    return urljoin(base_url, value.strip())


def meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    meta = soup.find("meta", attrs={"property": prop}) or soup.find(
        "meta", attrs={"name": prop}
    )
    if meta and meta.get("content"):
        return meta["content"].strip() or None
    return None


def image_from_node(node: Any, base_url: str) -> str | None:
    srcset = node.get("srcset") or node.get("data-srcset")
    if srcset:
        return pick_best_srcset(srcset, base_url)
    src = node.get("src") or node.get("data-src")
    if src:
        return urljoin(base_url, src)
    # <picture> хранит варианты во вложенных <source>
    if hasattr(node, "find_all"):
        for child in node.find_all("source"):
            source_srcset = child.get("srcset") or child.get("data-srcset")
            if source_srcset:
                url = pick_best_srcset(source_srcset, base_url)
                if url:
                    return url
    return None


def pick_best_srcset(srcset: str, base_url: str) -> str | None:
    """Выбирает вариант с наибольшим дескриптором (ширина важнее плотности)."""
    candidates = [
        part.strip().split(" ")
        for part in srcset.split(",")
        if part.strip()
    ]
    best_url = None
    best_priority = -1
    best_score = -1.0
    for candidate in candidates:
        url_part = candidate[0]
        descriptor = candidate[-1] if len(candidate) > 1 else ""
        priority = 0
        score = 0.0
        if descriptor.endswith(("w", "x")):
            priority = 2 if descriptor.endswith("w") else 1
            try:
                score = float(descriptor[:-1])
            except ValueError:
                score = 0.0
        if priority > best_priority or (priority == best_priority and score > best_score):
            best_priority = priority
            best_score = score
            best_url = urljoin(base_url, url_part)
    return best_url


def unique(values: Iterable[str | None]) -> list[str]:
    """Убирает пустые значения и повторы, сохраняя порядок."""
    return list(dict.fromkeys(value for value in values if value))
