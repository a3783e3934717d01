"""Tests for cleanread.services.images."""

import asyncio
import io
from unittest.mock import AsyncMock, patch

import httpx
from bs4 import BeautifulSoup
from PIL import Image as PILImage

from cleanread.services.images import StandardImageExtractor, local_image_path, measure_image

_BASE_URL = "https://example.com/news/story"
_LINKHASH = "0123456789abcdef0123456789abcdef"


def _png(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    PILImage.new("RGB", (width, height), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def _docs(head: str = "", body: str = ""):
    soup = BeautifulSoup(f"<html><head>{head}</head><body><div>{body}</div></body></html>", "lxml")
    return soup, soup.find("div")


def _fake_fetch(images: dict) -> AsyncMock:
    async def fetch(client, url, max_size):
        return images[url], httpx.Headers()

    return AsyncMock(side_effect=fetch)


def _run(extractor, raw_doc, top_node, storage_path):
    return asyncio.run(
        extractor.get_best_image(
            raw_doc, top_node, base_url=_BASE_URL, linkhash=_LINKHASH, storage_path=storage_path
        )
    )


class TestMetaImages:
    def test_og_image_wins(self, tmp_path):
        raw_doc, top_node = _docs(
            head='<meta property="og:image" content="/img/lead.jpg">',
            body='<img src="/img/other.jpg">',
        )
        with patch("cleanread.services.images.fetch_bytes") as mock_fetch:
            image = _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        mock_fetch.assert_not_called()
        assert image.src == "https://example.com/img/lead.jpg"
        assert image.extraction_type == "opengraph"
        assert image.confidence_score == 100.0

    def test_link_image_src(self, tmp_path):
        raw_doc, top_node = _docs(head='<link rel="image_src" href="https://cdn.example.com/a.jpg">')
        image = _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)
        assert image.src == "https://cdn.example.com/a.jpg"
        assert image.extraction_type == "linktag"


class TestContentImages:
    def test_picks_largest_image(self, tmp_path):
        images = {
            "https://example.com/img/wide.png": _png(200, 100),
            "https://example.com/img/square.png": _png(100, 100),
            "https://example.com/img/tiny.png": _png(20, 20),
            "https://example.com/img/strip.png": _png(600, 50),
        }
        body = "".join(f'<img src="{url.replace("https://example.com", "")}">' for url in images)
        body += '<img src="https://example.com/ads/banner.png">'
        raw_doc, top_node = _docs(body=body)

        mock_fetch = _fake_fetch(images)
        with patch("cleanread.services.images.fetch_bytes", mock_fetch):
            image = _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        assert image.src == "https://example.com/img/wide.png"
        assert image.extraction_type == "bigimage"
        assert (image.width, image.height) == (200, 100)
        assert image.bytes == len(images["https://example.com/img/wide.png"])
        assert image.confidence_score == 66.67
        assert mock_fetch.await_count == 4

    def test_downloads_are_named_by_linkhash(self, tmp_path):
        images = {"https://example.com/img/a.png": _png(120, 90)}
        raw_doc, top_node = _docs(body='<img src="/img/a.png">')

        with patch("cleanread.services.images.fetch_bytes", _fake_fetch(images)):
            _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        stored = list(tmp_path.iterdir())
        assert stored == [local_image_path(tmp_path, _LINKHASH, "https://example.com/img/a.png")]
        assert stored[0].name.startswith(f"{_LINKHASH}_")

    def test_reuses_stored_copy(self, tmp_path):
        url = "https://example.com/img/a.png"
        local_image_path(tmp_path, _LINKHASH, url).write_bytes(_png(80, 80))
        raw_doc, top_node = _docs(body='<img src="/img/a.png">')

        with patch("cleanread.services.images.fetch_bytes") as mock_fetch:
            image = _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        mock_fetch.assert_not_called()
        assert (image.width, image.height) == (80, 80)
        assert image.confidence_score == 100.0

    def test_file_access_runs_in_worker_threads(self, tmp_path):
        url = "https://example.com/img/a.png"
        stored = local_image_path(tmp_path, _LINKHASH, url)
        stored.write_bytes(_png(80, 80))
        raw_doc, top_node = _docs(body='<img src="/img/a.png">')
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def to_thread(func, *args, **kwargs):
            offloaded.append((func.__name__, getattr(func, "__self__", None)))
            return await real_to_thread(func, *args, **kwargs)

        with patch("cleanread.services.images.asyncio.to_thread", side_effect=to_thread):
            _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        assert ("exists", stored) in offloaded
        assert ("read_bytes", stored) in offloaded

    def test_fetch_failure_is_skipped(self, tmp_path):
        raw_doc, top_node = _docs(body='<img src="/img/a.png">')
        failing = AsyncMock(side_effect=httpx.ConnectError("unreachable"))

        with patch("cleanread.services.images.fetch_bytes", failing):
            image = _run(StandardImageExtractor(), raw_doc, top_node, tmp_path)

        assert image is None

    def test_no_images(self, tmp_path):
        raw_doc, top_node = _docs(body="<p>Only words here.</p>")
        assert _run(StandardImageExtractor(), raw_doc, top_node, tmp_path) is None


class TestMeasureImage:
    def test_measures_png(self):
        assert measure_image(_png(30, 40)) == (30, 40)

    def test_garbage_is_none(self):
        assert measure_image(b"definitely not an image") is None
