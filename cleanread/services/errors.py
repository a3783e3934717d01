"""Exceptions raised by the article pipeline and its collaborators."""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for article pipeline errors."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class InvalidUrlError(CrawlError, ValueError):
    """The URL could not be normalised into an absolute http(s) URL."""


class FetchError(CrawlError):
    """Raw HTML could not be retrieved for a URL."""


class ParseError(CrawlError):
    """Raw HTML could not be turned into a document tree."""


class UnknownCandidateError(CrawlError, TypeError):
    """The pipeline was handed something that is not a crawl candidate."""


__all__ = [
    "CrawlError",
    "InvalidUrlError",
    "FetchError",
    "ParseError",
    "UnknownCandidateError",
]
