import asyncio
import logging
from typing import Optional

from .studentproject_service import StudentprojectService

logger = logging.getLogger(__name__)

DEFAULT_CRAWL_INTERVAL: int = 60 * 60  # 1 hour


class CrawlScheduler:
    """
    Background task that refreshes the student project snapshot periodically.

    The interval is measured from the end of one refresh to the start of the
    next. Refresh failures are handled by the service and never stop the loop.
    """

    def __init__(
        self,
        service: StudentprojectService,
        interval: int = DEFAULT_CRAWL_INTERVAL,
        run_on_start: bool = True,
    ):
        self._service = service
        self._interval = interval
        self._run_on_start = run_on_start
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Starts the background crawl task."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info(f"Student project crawler started. Interval: {self._interval} seconds.")

    async def stop(self):
        """Stops the background crawl task."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Student project crawler stopped.")

    async def _run(self):
        if self._run_on_start:
            await self._service.refresh()
        while True:
            await asyncio.sleep(self._interval)
            await self._service.refresh()
