from catalog_scraper.cli import entrypoint

entrypoint()
