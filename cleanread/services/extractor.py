"""Default content extractor: metadata, best-node clustering and video discovery."""

import html
import logging
import re
from typing import Dict, List, Optional, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from cleanread.models.article import Article

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z']+")

_STOP_WORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be
    because been before being below between both but by can could did do does
    doing down during each few for from further had has have having he her here
    hers herself him himself his how i if in into is it its itself just may me
    might more most must my myself no nor not now of off on once one only or
    other our ours ourselves out over own said same she should so some such
    than that the their theirs them themselves then there these they this those
    through to too under until up upon us very was we were what when where
    which while who whom why will with would you your yours yourself yourselves
    """.split()
)

# Title separators, in the order they are tried
_TITLE_SEPARATORS = (" | ", " - ", " – ", " — ", " » ", " : ")

_TAG_LINK_SELECTORS = (
    "a[rel~=tag]",
    'a[href*="/tag/"]',
    'a[href*="/tags/"]',
    'a[href*="/topic/"]',
    'a[href*="?keyword="]',
)
_MAX_TAG_LENGTH = 100

# Paragraph-like nodes considered as content candidates
_CANDIDATE_TAGS = ["p", "pre", "td"]
_MIN_CANDIDATE_STOPWORDS = 2
_MIN_BOOST_SIBLING_STOPWORDS = 5
_MAX_BOOST_SIBLING_STEPS = 3

_VIDEO_PROVIDERS = ("youtube", "youtu.be", "vimeo", "dailymotion", "kewego")
_VIDEO_TAGS = ["iframe", "embed", "object", "video"]


def stopword_count(text: str) -> int:
    """Number of English stopwords in *text*."""
    return sum(1 for word in _WORD_RE.findall(text.lower()) if word in _STOP_WORDS)


def is_high_link_density(node: Tag) -> bool:
    """True when most of *node*'s words sit inside links."""
    links = node.find_all("a")
    if not links:
        return False
    words = node.get_text(" ", strip=True).split()
    if not words:
        return True
    link_words = sum(len(a.get_text(" ", strip=True).split()) for a in links)
    return (link_words / len(words)) * len(links) > 1.0


def _meta_content(doc: BeautifulSoup, **attrs: str) -> str:
    meta = doc.find("meta", attrs=attrs)
    if meta and meta.get("content"):
        return str(meta["content"]).strip()
    return ""


def _split_title(title: str) -> str:
    """Keep the longest segment of a "Headline | Site Name" style title."""
    for separator in _TITLE_SEPARATORS:
        if separator in title:
            return max(title.split(separator), key=len).strip()
    return title


class StandardContentExtractor:
    """Heuristic extractor working on BeautifulSoup trees."""

    # ── metadata ─────────────────────────────────────────────────────────────

    def get_title(self, article: Article) -> str:
        doc = article.doc
        title_tag = doc.find("title")
        raw = title_tag.get_text(" ", strip=True) if title_tag else ""
        if not raw:
            raw = _meta_content(doc, property="og:title")
        if not raw:
            h1 = doc.find("h1")
            raw = h1.get_text(" ", strip=True) if h1 else ""
        return _split_title(html.unescape(raw).strip())

    def get_meta_description(self, article: Article) -> str:
        return _meta_content(article.doc, name="description") or _meta_content(
            article.doc, property="og:description"
        )

    def get_meta_keywords(self, article: Article) -> str:
        return _meta_content(article.doc, name="keywords")

    def get_canonical_link(self, article: Article) -> str:
        """Return the canonical URL declared in the page, else the final URL."""
        doc = article.doc
        link_tag = doc.find("link", rel="canonical")
        if link_tag and link_tag.get("href"):
            return urljoin(article.final_url, str(link_tag["href"]).strip())

        og_url = _meta_content(doc, property="og:url")
        if og_url:
            return urljoin(article.final_url, og_url)

        return article.final_url

    def get_domain(self, url: str) -> str:
        return urlparse(url).hostname or ""

    def extract_tags(self, article: Article) -> Set[str]:
        tags: Set[str] = set()
        for selector in _TAG_LINK_SELECTORS:
            for anchor in article.doc.select(selector):
                text = anchor.get_text(" ", strip=True)
                if text and len(text) <= _MAX_TAG_LENGTH:
                    tags.add(text)
        return tags

    # ── content ──────────────────────────────────────────────────────────────

    def calculate_best_node(self, article: Article) -> Optional[Tag]:
        """Find the element holding the main text by clustering scored paragraphs.

        Each paragraph with enough stopwords and few links adds its score to
        its parent, and half of it to its grandparent. Early paragraphs that
        are followed by more prose get a decaying boost. With more than 15
        candidates the trailing quarter is scored down.
        """
        candidates = [
            node
            for node in article.doc.find_all(_CANDIDATE_TAGS)
            if stopword_count(node.get_text(" ", strip=True)) > _MIN_CANDIDATE_STOPWORDS
            and not is_high_link_density(node)
        ]
        if not candidates:
            logger.debug("No paragraph candidates for %s", article.final_url)
            return None

        total = len(candidates)
        bottom_count = total * 0.25
        starting_boost = 1.0
        scores: Dict[int, float] = {}
        nodes: Dict[int, Tag] = {}

        for index, node in enumerate(candidates):
            boost = 0.0
            if self._is_ok_to_boost(node):
                boost = (1.0 / starting_boost) * 50
                starting_boost += 1

            if total > 15 and (total - index) <= bottom_count:
                booster = bottom_count - (total - index)
                boost = -(booster**2)
                if abs(boost) > 40:
                    boost = 5.0

            upscore = stopword_count(node.get_text(" ", strip=True)) + boost

            parent = node.parent
            if isinstance(parent, Tag):
                scores[id(parent)] = scores.get(id(parent), 0.0) + upscore
                nodes[id(parent)] = parent
                grandparent = parent.parent
                if isinstance(grandparent, Tag):
                    scores[id(grandparent)] = scores.get(id(grandparent), 0.0) + upscore / 2
                    nodes[id(grandparent)] = grandparent

        if not scores:
            return None
        best_id = max(scores, key=lambda key: scores[key])
        return nodes[best_id]

    def _is_ok_to_boost(self, node: Tag) -> bool:
        """A paragraph earns a boost when prose follows it closely."""
        sibling = node.find_next_sibling()
        steps = 0
        while sibling is not None and steps < _MAX_BOOST_SIBLING_STEPS:
            if sibling.name == "p":
                text = sibling.get_text(" ", strip=True)
                if stopword_count(text) > _MIN_BOOST_SIBLING_STOPWORDS:
                    return True
            sibling = sibling.find_next_sibling()
            steps += 1
        return False

    def extract_videos(self, node: Tag) -> List[str]:
        """Return embed URLs for videos around *node*, in document order."""
        scope = node.parent if isinstance(node.parent, Tag) else node
        movies: List[str] = []
        seen: set = set()
        for candidate in scope.find_all(_VIDEO_TAGS):
            src = self._video_source(candidate)
            if not src:
                continue
            if src.startswith("//"):
                src = "https:" + src
            if candidate.name != "video" and not any(p in src.lower() for p in _VIDEO_PROVIDERS):
                continue
            if src not in seen:
                seen.add(src)
                movies.append(src)
        return movies

    @staticmethod
    def _video_source(tag: Tag) -> str:
        if tag.name == "object":
            param = tag.find("param", attrs={"name": "movie"})
            if param and param.get("value"):
                return str(param["value"]).strip()
            embed = tag.find("embed")
            if embed and embed.get("src"):
                return str(embed["src"]).strip()
            return str(tag.get("data", "")).strip()
        if tag.name == "video" and not tag.get("src"):
            source = tag.find("source")
            return str(source.get("src", "")).strip() if source else ""
        return str(tag.get("src", "")).strip()

    def post_extraction_cleanup(self, node: Tag) -> Tag:
        """Drop link-heavy and prose-free children from the chosen node."""
        for child in list(node.children):
            if not isinstance(child, Tag):
                continue
            text = child.get_text(" ", strip=True)
            if child.name == "p":
                if not text:
                    child.decompose()
                continue
            if is_high_link_density(child):
                child.decompose()
            elif child.find("p") is None and stopword_count(text) < 3:
                child.decompose()
        return node
