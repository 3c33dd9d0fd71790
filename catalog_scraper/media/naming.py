from __future__ import annotations

import hashlib
import os
from urllib.parse import urlparse

from unidecode import unidecode

_KNOWN_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "avif", "svg", "mp4", "webm"}


def safe_stem(value: str, max_length: int = 80) -> str:
    """ASCII-имя файла из идентификатора товара.

    Одинаковые идентификаторы всегда дают одинаковое имя. Если после очистки
    ничего не осталось, используется md5 исходной строки.
    """
    ascii_value = unidecode(value)
    clean = "".join(
        ch if ch.isalnum() or ch in {"-", "_", "."} else "-" for ch in ascii_value
    )
    clean = "-".join(filter(None, clean.split("-"))).strip(".")
    if not clean:
        return hashlib.md5(value.encode("utf-8"), usedforsecurity=False).hexdigest()
    return clean[:max_length]


def guess_extension(url: str, default: str = "jpg") -> str:
    parsed = urlparse(url)
    ext = os.path.splitext(parsed.path)[1].lower().strip(".")
    if ext in _KNOWN_EXTENSIONS:
        return "jpg" if ext == "jpeg" else ext
    return default


def media_filename(record_id: str, index: int, url: str) -> str:
    return f"{safe_stem(record_id)}_{index}.{guess_extension(url)}"
