"""Playwright-based fetcher for JavaScript-rendered (dynamic) web pages."""

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from cleanread.services.fetcher import MAX_CONTENT_SIZE, validate_url

logger = logging.getLogger(__name__)

TIMEOUT_MS = 30_000  # 30 s in milliseconds


async def fetch_url_with_browser(
    url: str,
    *,
    wait_for_selector: str | None = None,
    wait_ms: int = 0,
) -> str:
    """Render *url* with a headless Chromium browser and return the full HTML.

    Args:
        url: The target URL (must be http/https and public).
        wait_for_selector: Optional CSS selector to wait for before capturing HTML.
        wait_ms: Extra milliseconds to wait after the page loads (0 = no extra wait).

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on browser/network errors.
    """
    await validate_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            args=[
                # --no-sandbox is required when running as root inside a container
                # (Docker drops the user namespace needed by Chromium's sandbox).
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        context = await browser.new_context()
        page = await context.new_page()
        try:
            await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)

            if wait_for_selector:
                await page.wait_for_selector(wait_for_selector, timeout=TIMEOUT_MS)

            if wait_ms > 0:
                await page.wait_for_timeout(wait_ms)

            html = await page.content()
        finally:
            await context.close()
            await browser.close()

    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    return html


class BrowserFetcher:
    """Fetcher that renders pages in headless Chromium before extraction.

    Selected with ``CLEANREAD_BROWSER_RENDERING=true`` for sites that only
    produce their content client-side.
    """

    def __init__(self, wait_for_selector: str | None = None, wait_ms: int = 0) -> None:
        self.wait_for_selector = wait_for_selector
        self.wait_ms = wait_ms

    async def fetch(self, url: str) -> Optional[str]:
        try:
            html = await fetch_url_with_browser(
                url, wait_for_selector=self.wait_for_selector, wait_ms=self.wait_ms
            )
        except ValueError as exc:
            logger.warning("Invalid or blocked URL (browser): %s – %s", url, exc)
            return None
        except (PlaywrightError, RuntimeError) as exc:
            logger.warning("Browser rendering error for %s: %s", url, exc)
            return None

        return html or None
