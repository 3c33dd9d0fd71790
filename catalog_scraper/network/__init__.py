"""HTTP-клиенты и загрузчик страниц."""

from .fetcher import FetchError, FetchExhaustedError, MediaDownloadError, PageFetcher
from .http_client_factory import HttpClientFactory

__all__ = [
    "FetchError",
    "FetchExhaustedError",
    "HttpClientFactory",
    "MediaDownloadError",
    "PageFetcher",
]
