"""Public facade over crawling, the project snapshot and content rendering."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Mapping, Optional

from ..models import ProjectContent, ProjectRecord, ProjectView
from .content_aggregator import ContentAggregator
from .snapshot_store import ProjectSnapshotStore
from .space_graph_crawler import SpaceGraphCrawler

logger = logging.getLogger(__name__)


class ProjectNotFoundError(Exception):
    """Raised when a project id is not part of the current snapshot."""


class StudentprojectService:
    def __init__(
        self,
        crawler: SpaceGraphCrawler,
        aggregator: ContentAggregator,
        root_space_id: str,
        *,
        store: Optional[ProjectSnapshotStore] = None,
        default_language: str = "en",
    ):
        self._crawler = crawler
        self._aggregator = aggregator
        self._root_space_id = root_space_id
        self.store = store or ProjectSnapshotStore()
        self.default_language = default_language
        self._crawl_lock = asyncio.Lock()

    @property
    def crawl_in_progress(self) -> bool:
        return self._crawl_lock.locked()

    async def refresh(self) -> None:
        """
        Crawl the space graph and replace the snapshot on success.

        Called by the scheduler. A trigger that arrives while a crawl is still
        running is skipped. Failures are logged and leave the previous
        snapshot in place.
        """
        if self._crawl_lock.locked():
            logger.warning("Student project crawl still in progress, skipping this trigger")
            return

        async with self._crawl_lock:
            logger.info("Fetching student projects...")
            started = time.monotonic()
            try:
                records = await self._crawler.crawl(self._root_space_id)
            except Exception:
                logger.exception(
                    f"Student project crawl failed, keeping {len(self.store)} previously found projects"
                )
                return

            self.store.replace(records)
            logger.info(
                f"Found {len(records)} student projects in {time.monotonic() - started:.1f}s"
            )

    def list_all(self) -> Mapping[str, ProjectRecord]:
        return self.store.all()

    def _require(self, project_id: str) -> ProjectRecord:
        record = self.store.get(project_id)
        if record is None:
            raise ProjectNotFoundError(f"Student project not found: {project_id}")
        return record

    async def get_content(self, project_id: str, language: str) -> ProjectContent:
        """Render the project's content blocks for ``language``.

        Raises:
            ProjectNotFoundError: If ``project_id`` is not in the snapshot.
        """
        self._require(project_id)
        blocks = await self._aggregator.aggregate(project_id, language)
        return ProjectContent(
            content={block.block_id: block for block in blocks},
            formatted_content="".join(block.formatted_content for block in blocks),
        )

    async def get_project(self, project_id: str, language: Optional[str] = None) -> ProjectView:
        """Return the stored record merged with freshly rendered content.

        Raises:
            ProjectNotFoundError: If ``project_id`` is not in the snapshot.
        """
        record = self._require(project_id)
        content = await self.get_content(project_id, language or self.default_language)
        return ProjectView(
            **record.model_dump(),
            content=content.content,
            formatted_content=content.formatted_content,
        )
