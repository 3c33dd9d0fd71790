from __future__ import annotations

import asyncio

import pytest

from catalog_scraper.network.fetcher import FetchExhaustedError, MediaDownloadError

from conftest import BASE_URL

PAGE = f"{BASE_URL}/p/1"


def test_fetch_succeeds_after_transient_failures(site, open_fetcher):
    site.page(PAGE, "<html>ok</html>")
    site.fail(PAGE, times=2)

    async def scenario():
        async with open_fetcher(max_tries=3) as fetcher:
            return await fetcher.fetch(PAGE)

    assert asyncio.run(scenario()) == "<html>ok</html>"
    assert site.count(PAGE) == 3


def test_fetch_exhausted_after_max_tries(site, open_fetcher):
    site.fail(PAGE)

    async def scenario():
        async with open_fetcher(max_tries=4) as fetcher:
            await fetcher.fetch(PAGE)

    with pytest.raises(FetchExhaustedError) as excinfo:
        asyncio.run(scenario())
    assert site.count(PAGE) == 4
    assert excinfo.value.attempts == 4
    assert excinfo.value.url == PAGE
    assert "connection refused" in str(excinfo.value.last_error)


def test_fetch_returns_error_page_body_by_default(site, open_fetcher):
    site.page(PAGE, "<html>gone</html>", status=404)

    async def scenario():
        async with open_fetcher(max_tries=3) as fetcher:
            return await fetcher.fetch(PAGE)

    assert asyncio.run(scenario()) == "<html>gone</html>"
    assert site.count(PAGE) == 1


def test_fetch_retries_error_status_when_configured(site, open_fetcher):
    site.page(PAGE, "<html>oops</html>", status=503)

    async def scenario():
        async with open_fetcher(max_tries=2, fail_on_error_status=True) as fetcher:
            await fetcher.fetch(PAGE)

    with pytest.raises(FetchExhaustedError):
        asyncio.run(scenario())
    assert site.count(PAGE) == 2


def test_fetch_to_file_streams_body(site, open_fetcher, tmp_path):
    image_url = f"{BASE_URL}/img/a.jpg"
    site.binary(image_url, b"\xff\xd8jpeg-bytes")
    target = tmp_path / "A1_1.jpg"

    async def scenario():
        async with open_fetcher() as fetcher:
            await fetcher.fetch_to_file(image_url, target)

    asyncio.run(scenario())
    assert target.read_bytes() == b"\xff\xd8jpeg-bytes"
    assert [path.name for path in tmp_path.iterdir()] == ["A1_1.jpg"]


def test_fetch_to_file_single_attempt_and_no_partial_file(site, open_fetcher, tmp_path):
    image_url = f"{BASE_URL}/img/missing.jpg"
    site.fail(image_url)
    target = tmp_path / "A1_1.jpg"

    async def scenario():
        async with open_fetcher(max_tries=5) as fetcher:
            await fetcher.fetch_to_file(image_url, target)

    with pytest.raises(MediaDownloadError):
        asyncio.run(scenario())
    assert site.count(image_url) == 1
    assert list(tmp_path.iterdir()) == []


def test_fetch_to_file_rejects_error_status(site, open_fetcher, tmp_path):
    image_url = f"{BASE_URL}/img/404.jpg"

    async def scenario():
        async with open_fetcher() as fetcher:
            await fetcher.fetch_to_file(image_url, tmp_path / "x_1.jpg")

    with pytest.raises(MediaDownloadError):
        asyncio.run(scenario())
    assert not (tmp_path / "x_1.jpg").exists()


def test_fetch_to_file_keeps_existing_file(site, open_fetcher, tmp_path):
    image_url = f"{BASE_URL}/img/b.jpg"
    site.binary(image_url, b"image-of-B")
    target = tmp_path / "DUP_1.jpg"
    target.write_bytes(b"image-of-A")

    async def scenario():
        async with open_fetcher() as fetcher:
            first = await fetcher.fetch_to_file(image_url, target)
            second = await fetcher.fetch_to_file(image_url, target)
            return first, second

    first, second = asyncio.run(scenario())

    assert target.read_bytes() == b"image-of-A"
    assert first != target
    assert first.name.startswith("DUP_1-") and first.suffix == ".jpg"
    assert first.read_bytes() == b"image-of-B"
    assert second not in (target, first)
    assert len(list(tmp_path.iterdir())) == 3
