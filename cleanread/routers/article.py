import dataclasses
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from cleanread.config import Configuration, make_output_formatter
from cleanread.models.article_request import ArticleRequest
from cleanread.models.article_response import ArticleResponse, NotFoundResponse
from cleanread.models.candidate import CrawlCandidate, NotFound
from cleanread.services.worker_pool import CrawlWorkerPool

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

_NOT_FOUND_DETAIL = {
    "invalid_url": "The URL could not be normalised into an http(s) URL.",
    "fetch_failed": "The page could not be fetched.",
    "parse_failed": "The page HTML could not be parsed.",
}


@router.post(
    "/article",
    response_model=ArticleResponse,
    responses={422: {"model": NotFoundResponse}},
    summary="Extract the article from a web page",
)
@limiter.limit("10/minute")
async def extract_article(request: Request, body: ArticleRequest):
    """Fetch *url* (unless ``raw_html`` is given) and return the cleaned article.

    The page is queued on the worker pool; the response is sent once a worker
    has run it through the whole pipeline. Pages without a recognisable
    content block still return their metadata with an empty
    ``cleaned_article_text``.
    """
    logger.info(
        "Article request received",
        extra={"url": body.url, "has_html": body.raw_html is not None},
    )

    config = _request_config(request.app.state.config, body)
    pool: CrawlWorkerPool = request.app.state.worker_pool
    result = await pool.crawl(CrawlCandidate(config, body.url, body.raw_html))

    if isinstance(result, NotFound):
        logger.info("No article for %s (%s)", result.url, result.reason)
        return JSONResponse(
            status_code=422,
            content=NotFoundResponse(
                detail=_NOT_FOUND_DETAIL[result.reason],
                reason=result.reason,
                url=result.url,
            ).model_dump(),
        )

    return ArticleResponse.from_article(result.article)


def _request_config(base: Configuration, body: ArticleRequest) -> Configuration:
    """Apply the per-request overrides in *body* on top of the server configuration."""
    overrides = {}
    if body.enable_image_fetching is not None:
        overrides["enable_image_fetching"] = body.enable_image_fetching
    if body.output_format is not None:
        overrides["output_formatter"] = make_output_formatter(body.output_format)
    if not overrides:
        return base
    return dataclasses.replace(base, **overrides)
