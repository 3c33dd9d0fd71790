"""Извлекатели данных по сайтам и общий контракт для конвейера."""

from catalog_scraper.config.targets import ScrapeTarget

from .base import ProductExtractor, create_extractor, parse_document, register_extractor
from .ulta import UltaExtractor

__all__ = [
    "ProductExtractor",
    "ScrapeTarget",
    "UltaExtractor",
    "create_extractor",
    "parse_document",
    "register_extractor",
]
