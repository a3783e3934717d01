"""Article pipeline: turns one crawl candidate into one article.

Stages run in a fixed order, each gated on the previous one:

1. normalise the URL                          → NotFound("invalid_url")
2. take the supplied HTML or fetch it         → NotFound("fetch_failed")
3. parse it and snapshot the untouched tree   → NotFound("parse_failed")
4. title, dates, meta tags, canonical link, domain, tags, additional data
5. clean the working tree
6. pick the best content node (may find none)
7. videos, and the top image when image fetching is enabled
8. post-extraction cleanup and text rendering
9. reclaim temp files for the linkhash, whatever happened after step 1
"""

import copy
import logging
from typing import Any, Callable, Optional, TypeVar

from bs4 import BeautifulSoup

from cleanread.config import Configuration
from cleanread.models.article import Article
from cleanread.models.candidate import CrawlResult, Found, FromHtml, FromUrl, NotFound
from cleanread.services.errors import FetchError, InvalidUrlError, UnknownCandidateError
from cleanread.services.normalizer import ParsingCandidate, normalize_url
from cleanread.services.reclaimer import release_resources

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ArticlePipeline:
    """Runs crawl candidates through the extraction stages.

    The pipeline holds no per-request state, so one instance can serve any
    number of concurrent runs. Each candidate carries its own configuration;
    *default_config* is used for candidates whose ``config`` is None.
    """

    def __init__(self, default_config: Optional[Configuration] = None) -> None:
        self.default_config = default_config or Configuration()

    async def execute(self, candidate: Any) -> Optional[Article]:
        """Return the article for *candidate*, or None when the crawl was abandoned."""
        result = await self.crawl(candidate)
        if isinstance(result, Found):
            return result.article
        return None

    async def crawl(self, candidate: Any) -> CrawlResult:
        """Run *candidate* through every stage.

        Raises:
            UnknownCandidateError: if *candidate* is not a FromUrl/FromHtml.
        """
        if not isinstance(candidate, (FromUrl, FromHtml)):
            raise UnknownCandidateError(
                f"Unknown crawl request of type {type(candidate).__name__}"
            )
        config = candidate.config or self.default_config

        try:
            parsing = normalize_url(candidate.url)
        except InvalidUrlError as exc:
            logger.info("Skipping invalid URL %r: %s", candidate.url, exc)
            return NotFound(url=str(candidate.url), reason="invalid_url")

        try:
            return await self._crawl(candidate, config, parsing)
        finally:
            release_resources(parsing.linkhash, config.local_storage_path)

    async def _crawl(
        self,
        candidate: Any,
        config: Configuration,
        parsing: ParsingCandidate,
    ) -> CrawlResult:
        raw_html = await self._get_html(candidate, config, parsing.url)
        if raw_html is None:
            return NotFound(url=parsing.url, reason="fetch_failed")

        doc = self._get_document(config, parsing.url, raw_html)
        if doc is None:
            return NotFound(url=parsing.url, reason="parse_failed")

        logger.debug("Crawling url: %s", parsing.url)
        article = Article(
            final_url=parsing.url,
            linkhash=parsing.linkhash,
            raw_html=raw_html,
            doc=doc,
            raw_doc=copy.copy(doc),
        )

        self._extract_metadata(article, config)

        # Clean the working tree before any scoring; raw_doc stays as parsed
        article.doc = config.document_cleaner.clean(article)

        extractor = config.content_extractor
        top_node = extractor.calculate_best_node(article)
        if top_node is None:
            logger.info("No article content found for %s", article.final_url)
            return Found(article=article)

        article.top_node = top_node
        article.movies = extractor.extract_videos(top_node)

        if config.enable_image_fetching and config.image_extractor is not None:
            logger.debug("Image fetching enabled for %s", article.final_url)
            try:
                article.top_image = await config.image_extractor.get_best_image(
                    article.raw_doc,
                    top_node,
                    base_url=article.final_url,
                    linkhash=article.linkhash,
                    storage_path=config.local_storage_path,
                )
            except Exception as exc:
                logger.warning("Image extraction failed for %s: %s", article.final_url, exc)

        article.top_node = extractor.post_extraction_cleanup(top_node)
        article.cleaned_article_text = config.output_formatter.get_formatted_text(
            article.top_node
        )
        return Found(article=article)

    async def _get_html(self, candidate: Any, config: Configuration, url: str) -> Optional[str]:
        if isinstance(candidate, FromHtml):
            return candidate.raw_html

        try:
            html = await config.fetcher.fetch(url)
        except FetchError as exc:
            logger.info("Fetch failed for %s: %s", exc.url or url, exc)
            return None
        except Exception as exc:
            logger.warning("Fetcher raised for %s: %s", url, exc)
            return None

        if not html:
            logger.info("Nothing fetched for %s", url)
            return None
        return html

    def _get_document(self, config: Configuration, url: str, raw_html: str) -> Optional[BeautifulSoup]:
        try:
            return config.parser.parse(raw_html)
        except Exception as exc:
            logger.info("Unable to parse %s into a document: %s", url, exc)
            return None

    def _extract_metadata(self, article: Article, config: Configuration) -> None:
        """Fill the fields that do not depend on the content node."""
        extractor = config.content_extractor

        def stage(name: str, func: Callable[[], T], default: T) -> T:
            try:
                return func()
            except Exception as exc:
                if config.strict_metadata:
                    raise
                logger.warning(
                    "Metadata stage %s failed for %s: %s", name, article.final_url, exc
                )
                return default

        article.title = stage("title", lambda: extractor.get_title(article), "")
        article.publish_date = stage(
            "publish_date", lambda: config.publish_date_extractor.extract(article.doc), None
        )
        article.additional_data = stage(
            "additional_data", lambda: config.additional_data_extractor.extract(article.doc), {}
        )
        article.meta_description = stage(
            "meta_description", lambda: extractor.get_meta_description(article), ""
        )
        article.meta_keywords = stage(
            "meta_keywords", lambda: extractor.get_meta_keywords(article), ""
        )
        article.canonical_link = stage(
            "canonical_link", lambda: extractor.get_canonical_link(article), article.final_url
        )
        article.domain = stage("domain", lambda: extractor.get_domain(article.final_url), "")
        article.tags = stage("tags", lambda: extractor.extract_tags(article), set())
