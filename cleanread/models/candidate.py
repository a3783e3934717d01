"""Crawl requests and results exchanged with the article pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional, Union

from cleanread.models.article import Article

if TYPE_CHECKING:
    from cleanread.config import Configuration

NotFoundReason = Literal["invalid_url", "fetch_failed", "parse_failed"]


@dataclass(frozen=True)
class FromUrl:
    """Crawl request whose HTML must be fetched."""

    config: Optional["Configuration"]
    url: str


@dataclass(frozen=True)
class FromHtml:
    """Crawl request that already carries the page HTML; no fetch happens."""

    config: Optional["Configuration"]
    url: str
    raw_html: str


Candidate = Union[FromUrl, FromHtml]


def CrawlCandidate(
    config: Optional["Configuration"], url: str, raw_html: Optional[str] = None
) -> Candidate:
    """Build the right candidate variant for *url* and optional *raw_html*."""
    if raw_html is None:
        return FromUrl(config=config, url=url)
    return FromHtml(config=config, url=url, raw_html=raw_html)


@dataclass(frozen=True)
class Found:
    article: Article


@dataclass(frozen=True)
class NotFound:
    """No article was produced; *reason* says which stage gave up."""

    url: str
    reason: NotFoundReason


CrawlResult = Union[Found, NotFound]
