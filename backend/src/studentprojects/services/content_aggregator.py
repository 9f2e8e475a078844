"""Builds the rendered content of one project in one language."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from ..matrix.events import MESSAGE_EVENT_TYPE, HierarchyRoom
from ..matrix.message_history_client import BACKWARDS, MessageHistoryClient
from ..matrix.room_graph_client import RoomGraphClient
from ..matrix.transport import MatrixRequestError
from ..models import ContentBlock
from ..rendering.block_renderers import MEDIA_BLOCK_TYPES, BlockRendererRegistry, BlockRenderingError

logger = logging.getLogger(__name__)

BLOCK_NAME_SEPARATOR = "_"


def parse_block_name(room_name: str) -> Optional[Tuple[str, str]]:
    """Split ``"<block_id>_<type>"`` on the first separator."""
    block_id, separator, block_type = room_name.partition(BLOCK_NAME_SEPARATOR)
    if not separator:
        return None
    return block_id, block_type


class ContentAggregator:
    """
    Discovers the content block rooms of a project and renders them.

    A project space holds one child space per language (named by language
    code); each of those holds one room per content block, named
    ``<block_id>_<type>``. The latest message of a block room is its content.
    """

    def __init__(
        self,
        room_graph: RoomGraphClient,
        message_history: MessageHistoryClient,
        renderers: BlockRendererRegistry,
    ):
        self._room_graph = room_graph
        self._message_history = message_history
        self._renderers = renderers

    async def aggregate(self, project_id: str, language: str) -> List[ContentBlock]:
        """Return the project's blocks for ``language`` ordered by block id.

        An unknown language yields an empty list.
        """
        language_space_id = await self._find_language_space(project_id, language)
        if language_space_id is None:
            logger.debug(f"Project {project_id} has no '{language}' space")
            return []

        rooms = [
            room
            for room in await self._room_graph.get_immediate_children(language_space_id)
            if room.room_id != language_space_id
        ]
        blocks = await asyncio.gather(*(self._build_block(room) for room in rooms))
        return sorted(
            (block for block in blocks if block is not None),
            key=lambda block: block.block_id,
        )

    async def _find_language_space(self, project_id: str, language: str) -> Optional[str]:
        for room in await self._room_graph.get_immediate_children(project_id):
            if room.room_id == project_id:
                continue
            if room.name == language:
                return room.room_id
        return None

    async def _build_block(self, room: HierarchyRoom) -> Optional[ContentBlock]:
        parsed = parse_block_name(room.name)
        if parsed is None:
            logger.debug(f"Skipping room {room.room_id}: '{room.name}' is not a content block name")
            return None
        block_id, block_type = parsed

        try:
            messages = await self._message_history.fetch_recent_messages(
                room.room_id,
                limit=1,
                direction=BACKWARDS,
                event_types=[MESSAGE_EVENT_TYPE],
            )
        except MatrixRequestError as exc:
            logger.warning(f"Skipping block {room.name}: {exc}")
            return None
        if not messages:
            logger.debug(f"Skipping block {room.name}: no message")
            return None
        message = messages[0]

        if block_type in MEDIA_BLOCK_TYPES:
            content = self._room_graph.resolve_media_url(message.url)
        else:
            content = message.body

        context = {"content": content, "raw_message_content": message.content}
        try:
            formatted = self._renderers.render(block_type, context)
        except BlockRenderingError as exc:
            logger.warning(f"Block {room.name} in {room.room_id} not rendered: {exc}")
            return ContentBlock(block_id=block_id, type=block_type, content=content, error=str(exc))

        return ContentBlock(
            block_id=block_id,
            type=block_type,
            content=content,
            formatted_content=formatted,
        )
