import asyncio
import ipaddress
import logging
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}
USER_AGENT = "Mozilla/5.0 (compatible; cleanread/1.0; +https://github.com/cleanread)"


async def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        raw_ip = info[4][0]
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = raw_ip.split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


async def validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if await _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    max_size: int = MAX_CONTENT_SIZE,
) -> tuple[bytes, httpx.Headers]:
    """GET *url* with *client* and return the body and the final response headers.

    Redirects are followed manually so that every redirect destination is
    validated against the SSRF rules before the next request is made.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: if the response body exceeds *max_size*.
    """
    await validate_url(url)

    current_url = url
    for _ in range(MAX_REDIRECTS + 1):
        async with client.stream("GET", current_url) as response:
            if response.is_redirect:
                location = response.headers.get("location", "")
                next_url = urljoin(current_url, location)
                await validate_url(next_url)
                current_url = next_url
                continue

            response.raise_for_status()

            content_length = response.headers.get("content-length")
            if content_length and int(content_length) > max_size:
                raise RuntimeError("Response body exceeds the maximum allowed size.")

            chunks = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > max_size:
                    raise RuntimeError("Response body exceeds the maximum allowed size.")
                chunks.append(chunk)

            return b"".join(chunks), response.headers

    raise RuntimeError("Too many redirects.")


async def fetch_url(url: str, timeout: float = TIMEOUT) -> str:
    """Fetch *url* and return the response body as a string.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: if the response body exceeds MAX_CONTENT_SIZE.
    """
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    ) as client:
        body, _headers = await fetch_bytes(client, url)
    return body.decode(errors="replace")


class HttpFetcher:
    """Default fetcher: plain HTTP GET through httpx.

    Failures are logged and reported as ``None``; retry policy is left to
    whoever schedules the crawl.
    """

    def __init__(self, timeout: float = TIMEOUT) -> None:
        self.timeout = timeout

    async def fetch(self, url: str) -> Optional[str]:
        try:
            html = await fetch_url(url, timeout=self.timeout)
        except ValueError as exc:
            logger.warning("Invalid or blocked URL: %s – %s", url, exc)
            return None
        except httpx.TimeoutException:
            logger.warning("Timeout fetching URL: %s", url)
            return None
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "HTTP error fetching URL %s: HTTP %s", url, exc.response.status_code
            )
            return None
        except (httpx.RequestError, RuntimeError) as exc:
            logger.warning("Error fetching URL %s: %s", url, exc)
            return None

        return html or None
