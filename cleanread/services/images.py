"""Representative-image selection.

Candidates are taken, in order, from the ``og:image`` meta tag, the
``<link rel="image_src">`` tag, and finally the images inside the chosen
content node. Content images are downloaded into the local storage
directory, named ``<linkhash>_<md5(src)>`` so the pipeline can reclaim
them once the article is done, and measured with Pillow.
"""

import asyncio
import hashlib
import io
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from cleanread.models.article import Image
from cleanread.services.fetcher import TIMEOUT, USER_AGENT, fetch_bytes

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_CANDIDATES = 10
MIN_WIDTH = 50
MIN_HEIGHT = 50
# Wider or taller than this ratio is a banner or a spacer strip
MAX_ASPECT_RATIO = 5.0

# Image URLs that are share buttons, trackers or ad creatives
_BAD_IMAGE_RE = re.compile(
    r"\.html|\.ico|button|twitter\.jpg|facebook\.(?:jpg|png)|ap_buy_photo|"
    r"digg\.(?:jpg|png)|delicious\.png|reddit\.jpg|doubleclick|diggthis|"
    r"adserver|/ads/|ec\.atdmt\.com|mediaplex\.com|adsatt|view\.atdmt|spacer|pixel\.gif",
    re.IGNORECASE,
)


def _meta_image(raw_doc: BeautifulSoup, base_url: str) -> Optional[Image]:
    og = raw_doc.find("meta", attrs={"property": "og:image"})
    if og and og.get("content"):
        return Image(
            src=urljoin(base_url, str(og["content"]).strip()),
            extraction_type="opengraph",
            confidence_score=100.0,
        )

    link = raw_doc.find("link", rel="image_src")
    if link and link.get("href"):
        return Image(
            src=urljoin(base_url, str(link["href"]).strip()),
            extraction_type="linktag",
            confidence_score=100.0,
        )
    return None


def _candidate_urls(top_node: Tag, base_url: str) -> List[str]:
    seen: set = set()
    urls: List[str] = []
    for img in top_node.find_all("img"):
        src = img.get("src") or img.get("data-src")
        if not src:
            continue
        abs_url = urljoin(base_url, str(src).strip())
        if _BAD_IMAGE_RE.search(abs_url) or abs_url in seen:
            continue
        seen.add(abs_url)
        urls.append(abs_url)
        if len(urls) >= MAX_CANDIDATES:
            break
    return urls


def local_image_path(storage_path: Path, linkhash: str, src: str) -> Path:
    """Where the downloaded copy of *src* lives for the article *linkhash*."""
    return storage_path / f"{linkhash}_{hashlib.md5(src.encode('utf-8')).hexdigest()}"


def measure_image(data: bytes) -> Optional[Tuple[int, int]]:
    """Return ``(width, height)`` of the encoded image, or None if unreadable."""
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return None


class StandardImageExtractor:
    """Default image extractor; downloads go to the *storage_path* of each call."""

    def __init__(self, timeout: float = TIMEOUT) -> None:
        self.timeout = timeout

    async def get_best_image(
        self,
        raw_doc: BeautifulSoup,
        top_node: Tag,
        *,
        base_url: str,
        linkhash: str,
        storage_path: Path,
    ) -> Optional[Image]:
        image = _meta_image(raw_doc, base_url)
        if image is not None:
            return image

        urls = _candidate_urls(top_node, base_url)
        if not urls:
            return None
        return await self._largest_image(urls, linkhash, Path(storage_path))

    async def _largest_image(
        self, urls: List[str], linkhash: str, storage_path: Path
    ) -> Optional[Image]:
        await asyncio.to_thread(storage_path.mkdir, parents=True, exist_ok=True)
        measured: List[Image] = []

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            for url in urls:
                data = await self._load(client, url, local_image_path(storage_path, linkhash, url))
                if data is None:
                    continue
                size = measure_image(data)
                if size is None:
                    logger.debug("Skipping %s: not a readable image", url)
                    continue
                width, height = size
                if width < MIN_WIDTH or height < MIN_HEIGHT:
                    continue
                if max(width, height) / min(width, height) > MAX_ASPECT_RATIO:
                    continue
                measured.append(
                    Image(
                        src=url,
                        extraction_type="bigimage",
                        width=width,
                        height=height,
                        bytes=len(data),
                    )
                )

        if not measured:
            return None

        total_area = sum(img.width * img.height for img in measured)
        best = max(measured, key=lambda img: img.width * img.height)
        best.confidence_score = round(100.0 * best.width * best.height / total_area, 2)
        return best

    async def _load(self, client: httpx.AsyncClient, url: str, path: Path) -> Optional[bytes]:
        """Return the image bytes, reusing the stored copy at *path* if one exists."""
        if await asyncio.to_thread(path.exists):
            return await asyncio.to_thread(path.read_bytes)

        try:
            data, _headers = await fetch_bytes(client, url, max_size=MAX_IMAGE_BYTES)
        except (ValueError, httpx.HTTPError, RuntimeError) as exc:
            logger.warning("Failed to fetch image %s: %s", url, exc)
            return None

        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            logger.warning("Failed to store image %s at %s: %s", url, path, exc)
        return data
