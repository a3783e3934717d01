"""HTML parsing into BeautifulSoup document trees."""

import logging

from bs4 import BeautifulSoup

from cleanread.services.errors import ParseError

logger = logging.getLogger(__name__)


class LxmlParser:
    """Default parser: BeautifulSoup on top of lxml's lenient HTML parser."""

    features = "lxml"

    def parse(self, html: str) -> BeautifulSoup:
        if not isinstance(html, str):
            raise ParseError(f"Expected HTML text, got {type(html).__name__}.")
        try:
            soup = BeautifulSoup(html, self.features)
        except Exception as exc:
            raise ParseError(f"Unable to parse HTML: {exc}") from exc

        # lxml yields an empty tree for input it cannot make sense of
        if soup.find(True) is None:
            raise ParseError("HTML produced an empty document.")
        return soup
