import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from cleanread.config import Configuration, get_settings
from cleanread.routers.article import limiter, router as article_router
from cleanread.services.pipeline import ArticlePipeline
from cleanread.services.worker_pool import CrawlWorkerPool

settings = get_settings()

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": settings.log_level.upper(), "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = Configuration.from_settings(settings)
    app.state.config = config
    app.state.worker_pool = CrawlWorkerPool(
        ArticlePipeline(config),
        workers=settings.workers,
        max_queue_size=settings.max_queue_size,
    )
    await app.state.worker_pool.start()
    logger.info("cleanread ready (storage: %s)", config.local_storage_path)
    try:
        yield
    finally:
        await app.state.worker_pool.stop()


app = FastAPI(
    title="cleanread – Article Extraction API",
    description="Fetches a URL, strips the boilerplate, and returns the article as structured data.",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(article_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from cleanread"}
