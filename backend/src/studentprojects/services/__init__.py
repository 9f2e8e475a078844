"""Crawling, snapshot and content services for student projects."""

from .content_aggregator import ContentAggregator
from .crawl_scheduler import CrawlScheduler
from .project_record_builder import ProjectRecordBuilder
from .snapshot_store import ProjectSnapshot, ProjectSnapshotStore
from .space_graph_crawler import PASS_THROUGH_TYPES, PROJECT_TYPE, CrawlFailure, SpaceGraphCrawler
from .studentproject_service import ProjectNotFoundError, StudentprojectService

__all__ = [
    "PASS_THROUGH_TYPES",
    "PROJECT_TYPE",
    "ContentAggregator",
    "CrawlFailure",
    "CrawlScheduler",
    "ProjectNotFoundError",
    "ProjectRecordBuilder",
    "ProjectSnapshot",
    "ProjectSnapshotStore",
    "SpaceGraphCrawler",
    "StudentprojectService",
]
