"""
Protocols for the pluggable stages of the article pipeline.

The pipeline only depends on these signatures. Each protocol has one default
implementation wired in by :class:`cleanread.config.Configuration`.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

from cleanread.models.article import Article, Image


@runtime_checkable
class Fetcher(Protocol):
    async def fetch(self, url: str) -> Optional[str]:
        """Return the page HTML, or None when nothing usable came back."""
        ...


@runtime_checkable
class Parser(Protocol):
    def parse(self, html: str) -> BeautifulSoup:
        """Parse *html* into a document tree.

        Raises:
            ParseError: if the HTML cannot be parsed.
        """
        ...


@runtime_checkable
class DocumentCleaner(Protocol):
    def clean(self, article: Article) -> BeautifulSoup:
        """Strip boilerplate from ``article.doc`` and return the cleaned tree."""
        ...


@runtime_checkable
class ContentExtractor(Protocol):
    def get_title(self, article: Article) -> str: ...

    def get_meta_description(self, article: Article) -> str: ...

    def get_meta_keywords(self, article: Article) -> str: ...

    def get_canonical_link(self, article: Article) -> str: ...

    def get_domain(self, url: str) -> str: ...

    def extract_tags(self, article: Article) -> set: ...

    def calculate_best_node(self, article: Article) -> Optional[Tag]:
        """Return the subtree most likely to hold the article text, if any."""
        ...

    def extract_videos(self, node: Tag) -> List[str]: ...

    def post_extraction_cleanup(self, node: Tag) -> Tag: ...


@runtime_checkable
class ImageExtractor(Protocol):
    async def get_best_image(
        self,
        raw_doc: BeautifulSoup,
        top_node: Tag,
        *,
        base_url: str,
        linkhash: str,
        storage_path: Path,
    ) -> Optional[Image]:
        """Pick the representative image, scoring against the uncleaned *raw_doc*.

        Temporary files must be written to *storage_path* and named with
        *linkhash* as a prefix so the pipeline can reclaim them afterwards.
        """
        ...


@runtime_checkable
class OutputFormatter(Protocol):
    def get_formatted_text(self, node: Tag) -> str: ...


@runtime_checkable
class PublishDateExtractor(Protocol):
    def extract(self, doc: BeautifulSoup) -> Optional[datetime]: ...


@runtime_checkable
class AdditionalDataExtractor(Protocol):
    def extract(self, doc: BeautifulSoup) -> Dict[str, str]: ...
