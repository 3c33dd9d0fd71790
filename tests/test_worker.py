from __future__ import annotations

import asyncio
from collections import Counter

from catalog_scraper.config.models import DelayConfig
from catalog_scraper.crawler.channel import Channel
from catalog_scraper.crawler.models import WorkItem
from catalog_scraper.crawler.worker import IdentifierFactory, ProductWorker
from catalog_scraper.media.downloader import MediaDownloader

from conftest import BASE_URL, FakeExtractor, detail_html


async def _process(open_fetcher, extractor, items, *, media_dir=None, ids=None, **network):
    async with open_fetcher(**network) as fetcher:
        media = MediaDownloader(fetcher, media_dir) if media_dir else None
        worker = ProductWorker(
            "worker-1",
            fetcher,
            extractor,
            ids=ids or IdentifierFactory(),
            delay=DelayConfig(),
            media=media,
        )
        return [await worker.process(item) for item in items]


def test_extracted_id_is_kept(site, open_fetcher, extractor):
    url = f"{BASE_URL}/p/1"
    site.page(url, detail_html(sku="SKU123", title="Крем"))

    [result] = asyncio.run(_process(open_fetcher, extractor, [WorkItem(url, id="list-id")]))

    assert result.ok
    assert result.record.id == "SKU123"
    assert result.record.fields["title"] == "Крем"


def test_missing_id_falls_back_to_listing_then_synthesized(site, open_fetcher, extractor):
    for index in (1, 2, 3):
        site.page(f"{BASE_URL}/p/{index}", detail_html(title=f"t{index}"))
    items = [
        WorkItem(f"{BASE_URL}/p/1", id="L-1"),
        WorkItem(f"{BASE_URL}/p/2"),
        WorkItem(f"{BASE_URL}/p/3"),
    ]
    ids = IdentifierFactory(clock=lambda: 1_700_000_000.0)

    results = asyncio.run(_process(open_fetcher, extractor, items, ids=ids))

    assert results[0].record.id == "L-1"
    synthesized = [result.record.id for result in results[1:]]
    assert synthesized[0] != synthesized[1]
    assert all(value.startswith("1700000000000-") for value in synthesized)


def test_listing_hints_fill_absent_fields(site, open_fetcher, extractor):
    url = f"{BASE_URL}/p/1"
    site.page(url, detail_html(sku="S1"))
    item = WorkItem(url, title="Сыворотка", description="30 мл")

    [result] = asyncio.run(_process(open_fetcher, extractor, [item]))

    assert result.record.fields["title"] == "Сыворотка"
    assert result.record.fields["description"] == "30 мл"


def test_fetch_failure_becomes_failed_result(site, open_fetcher, extractor):
    url = f"{BASE_URL}/p/1"
    site.fail(url)

    [result] = asyncio.run(_process(open_fetcher, extractor, [WorkItem(url)], max_tries=2))

    assert not result.ok
    assert result.record is None
    assert "p/1" in result.error
    assert site.count(url) == 2


def test_media_failure_keeps_record_with_successful_files(
    site, open_fetcher, extractor, tmp_path
):
    url = f"{BASE_URL}/p/1"
    good = f"{BASE_URL}/img/good.png"
    bad = f"{BASE_URL}/img/bad.jpg"
    also_good = f"{BASE_URL}/img/third"
    site.page(url, detail_html(sku="A1", media=[good, bad, also_good, good]))
    site.binary(good, b"png", content_type="image/png")
    site.binary(also_good, b"jpg")
    site.fail(bad)

    [result] = asyncio.run(
        _process(open_fetcher, extractor, [WorkItem(url)], media_dir=tmp_path)
    )

    assert result.ok
    assert result.record.media == ("A1_1.png", "A1_3.jpg")
    assert len(result.media_errors) == 1
    assert (tmp_path / "A1_1.png").read_bytes() == b"png"
    assert not (tmp_path / "A1_2.jpg").exists()


def test_workers_process_each_item_once(site, open_fetcher, extractor):
    urls = [f"{BASE_URL}/p/{index}" for index in range(20)]
    for index, url in enumerate(urls):
        site.page(url, detail_html(sku=f"S{index}"))

    async def scenario():
        work: Channel[WorkItem] = Channel()
        results = Channel()
        work_sender = work.sender()
        result_senders = [results.sender() for _ in range(3)]
        async with open_fetcher() as fetcher:
            ids = IdentifierFactory()
            workers = [
                ProductWorker(f"w{index}", fetcher, extractor, ids=ids, delay=DelayConfig())
                for index in range(3)
            ]
            tasks = [
                asyncio.create_task(worker.run(work, sender))
                for worker, sender in zip(workers, result_senders)
            ]
            for url in urls:
                await work_sender.send(WorkItem(url))
            await work_sender.aclose()
            processed = await asyncio.gather(*tasks)
        return processed, [result async for result in results]

    processed, collected = asyncio.run(scenario())

    assert sum(processed) == len(urls)
    counts = Counter(result.item.source_url for result in collected)
    assert set(counts) == set(urls)
    assert set(counts.values()) == {1}
    assert Counter(site.calls) == Counter(urls)


class _BrokenDetailExtractor(FakeExtractor):
    def detail_page(self, doc, source_url: str):
        if source_url.endswith("/broken"):
            raise KeyError("price")
        return super().detail_page(doc, source_url)


def test_extraction_error_fails_only_that_item(site, open_fetcher):
    broken = f"{BASE_URL}/p/broken"
    fine = f"{BASE_URL}/p/fine"
    site.page(broken, detail_html(sku="X1"))
    site.page(fine, detail_html(sku="X2"))

    results = asyncio.run(
        _process(open_fetcher, _BrokenDetailExtractor(), [WorkItem(broken), WorkItem(fine)])
    )

    assert not results[0].ok
    assert results[0].record is None
    assert "KeyError" in results[0].error
    assert results[1].ok
    assert results[1].record.id == "X2"


def test_existing_media_file_is_not_overwritten(site, open_fetcher, extractor, tmp_path):
    url = f"{BASE_URL}/p/1"
    image = f"{BASE_URL}/img/b.jpg"
    site.page(url, detail_html(sku="DUP", media=[image]))
    site.binary(image, b"image-of-B")
    (tmp_path / "DUP_1.jpg").write_bytes(b"image-of-A")

    [result] = asyncio.run(
        _process(open_fetcher, extractor, [WorkItem(url)], media_dir=tmp_path)
    )

    [saved] = result.record.media
    assert saved != "DUP_1.jpg"
    assert (tmp_path / "DUP_1.jpg").read_bytes() == b"image-of-A"
    assert (tmp_path / saved).read_bytes() == b"image-of-B"
