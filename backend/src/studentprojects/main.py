# main.py
# Entry point for the student project service.
# - Loads settings and configures logging
# - Opens the homeserver HTTP client and starts the periodic crawl
# - Provides root and health-check endpoints
# - Run with: uvicorn studentprojects.main:app
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from studentprojects import __version__
from studentprojects.config import Settings
from studentprojects.matrix import MatrixTransport, MessageHistoryClient, RoomGraphClient
from studentprojects.rendering import BlockRendererRegistry
from studentprojects.services import (
    ContentAggregator,
    CrawlScheduler,
    ProjectRecordBuilder,
    SpaceGraphCrawler,
    StudentprojectService,
)

logger = logging.getLogger(__name__)


def build_service(settings: Settings, http_client: httpx.AsyncClient) -> StudentprojectService:
    """Wire the Matrix clients, crawler and aggregator into a service."""
    transport = MatrixTransport(http_client, settings.homeserver_base_url, settings.access_token)
    room_graph = RoomGraphClient(transport)
    message_history = MessageHistoryClient(transport)

    crawler = SpaceGraphCrawler(room_graph, ProjectRecordBuilder(room_graph, message_history))
    aggregator = ContentAggregator(room_graph, message_history, BlockRendererRegistry.default())
    return StudentprojectService(
        crawler,
        aggregator,
        settings.root_context_space_id,
        default_language=settings.default_language,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings.from_env()
        logging.basicConfig(
            level=resolved.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logger.info(
            f"Crawling {resolved.root_context_space_id} on {resolved.homeserver_base_url} "
            f"as {resolved.user_id or 'the access token owner'}"
        )
        async with httpx.AsyncClient(timeout=resolved.timeout_seconds) as http_client:
            service = build_service(resolved, http_client)
            scheduler = CrawlScheduler(
                service,
                interval=resolved.crawl_interval_seconds,
                run_on_start=resolved.crawl_run_on_start,
            )
            app.state.studentprojects = service
            scheduler.start()
            try:
                yield
            finally:
                await scheduler.stop()

    app = FastAPI(
        title="Student Projects Service",
        description="Discovers student projects in Matrix spaces",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    def root():
        return {"status": "healthy", "message": "Student project service is running"}

    @app.get("/health")
    def health_check():
        service: Optional[StudentprojectService] = getattr(app.state, "studentprojects", None)
        if service is None:
            return {"status": "starting"}
        snapshot = service.store.snapshot
        return {
            "status": "ok",
            "projects": len(snapshot.records),
            "last_crawl_completed_at": snapshot.completed_at.isoformat() if snapshot.completed_at else None,
            "crawl_in_progress": service.crawl_in_progress,
        }

    return app


app = create_app()
