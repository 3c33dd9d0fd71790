"""Сборщик карточек товаров из постраничных каталогов."""

__version__ = "0.1.0"
