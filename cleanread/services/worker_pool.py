"""Bounded asyncio worker pool in front of the article pipeline."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from cleanread.models.candidate import CrawlResult, NotFound
from cleanread.services.pipeline import ArticlePipeline

logger = logging.getLogger(__name__)


@dataclass
class CrawlJob:
    candidate: Any
    result_future: asyncio.Future


class CrawlWorkerPool:
    """Fixed set of workers, each running one crawl at a time to completion.

    Workers share nothing but the queue: every run builds its own article and
    document trees.
    """

    def __init__(
        self,
        pipeline: ArticlePipeline,
        workers: int = 4,
        max_queue_size: int = 100,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.pipeline = pipeline
        self.workers = workers
        self.max_queue_size = max_queue_size
        self.queue: Optional[asyncio.Queue] = None
        self.running = False
        self.worker_tasks: List[asyncio.Task] = []
        self.stats = {"processed": 0, "not_found": 0, "errors": 0}

    async def start(self) -> None:
        if self.running:
            logger.warning("Worker pool already running")
            return

        self.queue = asyncio.Queue(maxsize=self.max_queue_size)
        self.running = True
        for worker_id in range(self.workers):
            task = asyncio.create_task(self._worker(worker_id), name=f"crawl-worker-{worker_id}")
            self.worker_tasks.append(task)
        logger.info("Worker pool started with %d workers", self.workers)

    async def stop(self) -> None:
        """Cancel the workers; jobs still queued have their futures cancelled."""
        if not self.running:
            return
        self.running = False

        for task in self.worker_tasks:
            task.cancel()
        if self.worker_tasks:
            await asyncio.gather(*self.worker_tasks, return_exceptions=True)
        self.worker_tasks.clear()

        while self.queue is not None and not self.queue.empty():
            job = self.queue.get_nowait()
            if not job.result_future.done():
                job.result_future.cancel()
        logger.info("Worker pool stopped")

    async def submit(self, candidate: Any) -> "asyncio.Future[CrawlResult]":
        """Queue *candidate* and return a future resolving to its crawl result.

        Waits for room when the queue is full.
        """
        if not self.running or self.queue is None:
            raise RuntimeError("Worker pool is not running")
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        await self.queue.put(CrawlJob(candidate=candidate, result_future=future))
        return future

    async def crawl(self, candidate: Any) -> CrawlResult:
        """Submit *candidate* and wait for its result."""
        future = await self.submit(candidate)
        return await future

    async def _worker(self, worker_id: int) -> None:
        assert self.queue is not None
        while True:
            job = await self.queue.get()
            try:
                if job.result_future.cancelled():
                    continue
                try:
                    result = await self.pipeline.crawl(job.candidate)
                except asyncio.CancelledError:
                    job.result_future.cancel()
                    raise
                except Exception as exc:
                    self.stats["errors"] += 1
                    logger.error("Worker %d: crawl failed: %s", worker_id, exc)
                    if not job.result_future.done():
                        job.result_future.set_exception(exc)
                    continue

                self.stats["processed"] += 1
                if isinstance(result, NotFound):
                    self.stats["not_found"] += 1
                if not job.result_future.done():
                    job.result_future.set_result(result)
            finally:
                self.queue.task_done()

    async def __aenter__(self) -> "CrawlWorkerPool":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
