"""Скачивание и именование медиафайлов товаров."""

from .downloader import MediaDownloader
from .naming import guess_extension, media_filename, safe_stem

__all__ = ["MediaDownloader", "guess_extension", "media_filename", "safe_stem"]
