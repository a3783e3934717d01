"""Publish-date and additional-data extractors."""

import logging
from datetime import datetime
from typing import Dict, Optional

import dateutil.parser
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Checked in order; the first parseable value wins
_DATE_SELECTORS = (
    'meta[property="article:published_time"]',
    'meta[property="og:published_time"]',
    'meta[name="pubdate"]',
    'meta[name="publishdate"]',
    'meta[name="publish-date"]',
    'meta[name="date"]',
    'meta[name="dc.date.issued"]',
    'meta[itemprop="datePublished"]',
    '[itemprop="datePublished"]',
    "time[datetime]",
    "time[pubdate]",
)

_MIN_DATE_LENGTH = 6
_MAX_DATE_LENGTH = 64


def parse_date(value: str) -> Optional[datetime]:
    """Parse a free-form date string, returning None when it is not a date."""
    value = value.strip()
    if not (_MIN_DATE_LENGTH <= len(value) <= _MAX_DATE_LENGTH):
        return None
    try:
        return dateutil.parser.parse(value)
    except (ValueError, OverflowError):
        return None


class StandardPublishDateExtractor:
    """Reads the publication date from meta tags, microdata or ``<time>``."""

    def extract(self, doc: BeautifulSoup) -> Optional[datetime]:
        for selector in _DATE_SELECTORS:
            for element in doc.select(selector):
                raw = (
                    element.get("content")
                    or element.get("datetime")
                    or element.get_text(strip=True)
                )
                if not raw:
                    continue
                parsed = parse_date(str(raw))
                if parsed is not None:
                    logger.debug("Publish date %s found via %s", parsed, selector)
                    return parsed
        return None


class NoAdditionalDataExtractor:
    """Default additional-data extractor; contributes nothing."""

    def extract(self, doc: BeautifulSoup) -> Dict[str, str]:
        return {}


class OpenGraphDataExtractor:
    """Collects every ``og:*`` and ``article:*`` meta property into a mapping."""

    prefixes = ("og:", "article:")

    def extract(self, doc: BeautifulSoup) -> Dict[str, str]:
        data: Dict[str, str] = {}
        for meta in doc.find_all("meta", attrs={"property": True, "content": True}):
            prop = str(meta["property"]).strip()
            if prop.startswith(self.prefixes) and prop not in data:
                data[prop] = str(meta["content"]).strip()
        return data
