"""
Depth-first crawl of the Matrix space graph.

Starting from the configured root context space the crawler follows
``m.space.child`` links, classifies every space by its meta declaration and
collects the public student projects it finds.

Classification per node:
- deleted, nameless or undeclared spaces are pruned
- ``studentproject`` spaces are recorded when their publication state is
  ``public``; any other publication state prunes them
- container types (context, class, course, ...) are walked through
- every other type is pruned
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from ..matrix.events import (
    JOIN_RULES_EVENT_TYPE,
    META_EVENT_TYPE,
    NAME_EVENT_TYPE,
    SPACE_CHILD_EVENT_TYPE,
    MetaDeclaration,
    StateEvent,
    find_state_event,
)
from ..matrix.room_graph_client import RoomGraphClient
from ..matrix.transport import MatrixConnectionError, MatrixRequestError
from ..models import ProjectRecord, PublicationState
from .project_record_builder import ProjectRecordBuilder

logger = logging.getLogger(__name__)

PROJECT_TYPE = "studentproject"

# Space types the crawl passes through without recording them.
PASS_THROUGH_TYPES = frozenset({
    "context",
    "class",
    "course",
    "institution",
    "degree program",
    "design department",
    "faculty",
    "institute",
    "semester",
})


class CrawlFailure(Exception):
    """Raised when a crawl cycle cannot be completed."""

    def __init__(self, message: str, path: Tuple[str, ...] = ()):
        super().__init__(message)
        self.path = path


@dataclass
class _Frame:
    node_id: str
    parent_name: str
    path: Tuple[str, ...]


class SpaceGraphCrawler:
    def __init__(
        self,
        room_graph: RoomGraphClient,
        record_builder: ProjectRecordBuilder,
        project_type: str = PROJECT_TYPE,
        pass_through_types: frozenset = PASS_THROUGH_TYPES,
    ):
        self._room_graph = room_graph
        self._record_builder = record_builder
        self._project_type = project_type
        self._pass_through_types = pass_through_types

    async def crawl(self, root_id: str) -> Dict[str, ProjectRecord]:
        """
        Walk the graph below ``root_id`` and return public projects by room id.

        Each node is processed at most once, so cyclic child links terminate.

        Raises:
            CrawlFailure: If the root is unreachable or the homeserver
                          connection fails mid-crawl.
        """
        result: Dict[str, ProjectRecord] = {}
        visited: Set[str] = set()
        stack: List[_Frame] = [_Frame(root_id, "", ())]

        while stack:
            frame = stack.pop()
            if frame.node_id in visited:
                logger.debug(f"Skipping already visited space {frame.node_id}")
                continue
            visited.add(frame.node_id)

            try:
                children = await self._visit(frame, result, is_root=frame.node_id == root_id)
            except MatrixConnectionError as exc:
                path = frame.path + (frame.node_id,)
                raise CrawlFailure(
                    f"Lost connection while crawling {' > '.join(path)}: {exc}", path
                ) from exc

            # Reversed so the first declared child is visited next.
            for child in reversed(children):
                stack.append(child)

        return result

    async def _visit(
        self, frame: _Frame, result: Dict[str, ProjectRecord], is_root: bool
    ) -> List[_Frame]:
        node_id = frame.node_id
        state = await self._room_graph.get_node_state(node_id)
        if state is None:
            if is_root:
                raise CrawlFailure(f"Root space {node_id} is unreachable", (node_id,))
            logger.debug(f"Pruning {node_id}: state unavailable")
            return []

        meta_event = find_state_event(state, META_EVENT_TYPE)
        name_event = find_state_event(state, NAME_EVENT_TYPE)
        if meta_event is None or name_event is None:
            logger.debug(f"Pruning {node_id}: missing meta or name")
            return []

        meta = MetaDeclaration.from_content(meta_event.content)
        if meta.deleted:
            logger.debug(f"Pruning {node_id}: deleted")
            return []

        space_name = name_event.content.get("name")
        if not isinstance(space_name, str):
            logger.debug(f"Pruning {node_id}: malformed name {space_name!r}")
            return []
        published = await self._resolve_published(node_id, meta)

        if meta.type == self._project_type and published == PublicationState.public.value:
            record = await self._build_record(frame, meta, space_name, published)
            if record is not None:
                result[node_id] = record
        elif meta.type not in self._pass_through_types:
            logger.debug(f"Pruning {node_id}: type {meta.type!r}, published {published!r}")
            return []

        path = frame.path + (node_id,)
        return [
            _Frame(child_id, space_name, path)
            for child_id in self._child_ids(node_id, state)
        ]

    async def _resolve_published(self, node_id: str, meta: MetaDeclaration) -> str:
        if meta.published:
            return meta.published

        join_rules = await self._room_graph.get_single_state_event(node_id, JOIN_RULES_EVENT_TYPE)
        if not join_rules or "join_rule" not in join_rules:
            return PublicationState.draft.value
        if join_rules["join_rule"] == "invite":
            return PublicationState.draft.value
        return PublicationState.public.value

    async def _build_record(
        self, frame: _Frame, meta: MetaDeclaration, space_name: str, published: str
    ) -> Optional[ProjectRecord]:
        try:
            return await self._record_builder.build(
                frame.node_id, meta, space_name, frame.parent_name, published=published
            )
        except (MatrixRequestError, ValidationError) as exc:
            path = " > ".join(frame.path + (frame.node_id,))
            logger.warning(f"Omitting project {path}: {exc}")
            return None

    @staticmethod
    def _child_ids(node_id: str, state: List[StateEvent]) -> List[str]:
        return [
            event.state_key
            for event in state
            if event.type == SPACE_CHILD_EVENT_TYPE
            and event.room_id == node_id
            and event.state_key
            # An empty content marks a removed link.
            and event.content
        ]
