"""Assembles the metadata of a public student project space."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..matrix.events import AVATAR_EVENT_TYPE, MESSAGE_EVENT_TYPE, HierarchyRoom, MetaDeclaration
from ..matrix.message_history_client import BACKWARDS, MessageHistoryClient
from ..matrix.room_graph_client import RoomGraphClient
from ..models import ProjectRecord, PublicationState

logger = logging.getLogger(__name__)

HIERARCHY_MAX_DEPTH = 10
HIERARCHY_PAGE_LIMIT = 50
LOCATION_TOKEN = "location"
DISABLED_PREFIX = "x_"
LOCATION_HISTORY_LIMIT = 99


def _find_topic(rooms: List[HierarchyRoom], name: str) -> Optional[str]:
    for room in rooms:
        if room.name == name:
            return room.topic or None
    return None


def _is_location_room(room: HierarchyRoom) -> bool:
    return LOCATION_TOKEN in room.name and not room.name.startswith(DISABLED_PREFIX)


class ProjectRecordBuilder:
    """Builds ``ProjectRecord`` objects for nodes already known to be public projects."""

    def __init__(self, room_graph: RoomGraphClient, message_history: MessageHistoryClient):
        self._room_graph = room_graph
        self._message_history = message_history

    async def build(
        self,
        node_id: str,
        meta: MetaDeclaration,
        display_name: str,
        parent_name: str,
        published: str = PublicationState.public.value,
    ) -> ProjectRecord:
        """
        Collect thumbnail, authors, topics and location strings for ``node_id``.

        Args:
            node_id: Room id of the project space.
            meta: Parsed meta declaration of the space.
            display_name: The space's ``m.room.name``.
            parent_name: Display name of the space it was reached from.
            published: Resolved publication state.

        Raises:
            MatrixClientError: If membership or hierarchy cannot be read.
        """
        thumbnail = await self._resolve_thumbnail(node_id)

        members = await self._room_graph.get_current_members(node_id)
        authors = [member.display_name or member.user_id for member in members]

        hierarchy = await self._room_graph.get_hierarchy(
            node_id, max_depth=HIERARCHY_MAX_DEPTH, page_limit=HIERARCHY_PAGE_LIMIT
        )
        location = await self._collect_locations(
            [room for room in hierarchy if _is_location_room(room)]
        )

        return ProjectRecord(
            id=node_id,
            name=display_name,
            type=meta.type or "",
            topic_en=_find_topic(hierarchy, "en"),
            topic_de=_find_topic(hierarchy, "de"),
            location=location,
            thumbnail=thumbnail,
            authors=authors,
            credit=meta.credit,
            published=published,
            parent=parent_name,
        )

    async def _resolve_thumbnail(self, node_id: str) -> str:
        avatar = await self._room_graph.get_single_state_event(node_id, AVATAR_EVENT_TYPE)
        if not avatar or not avatar.get("url"):
            return ""
        return self._room_graph.resolve_media_url(avatar["url"])

    async def _collect_locations(self, rooms: List[HierarchyRoom]) -> List[List[str]]:
        if not rooms:
            return []
        return list(await asyncio.gather(*(self._location_strings(room) for room in rooms)))

    async def _location_strings(self, room: HierarchyRoom) -> List[str]:
        messages = await self._message_history.fetch_recent_messages(
            room.room_id,
            limit=LOCATION_HISTORY_LIMIT,
            direction=BACKWARDS,
            event_types=[MESSAGE_EVENT_TYPE],
        )
        return [
            message.body
            for message in messages
            if message.type == MESSAGE_EVENT_TYPE
            and not message.is_edit
            and not message.is_redacted
            and message.body is not None
        ]
