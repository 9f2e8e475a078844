"""Read-only access to space state, hierarchy, membership and media URLs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .events import HierarchyRoom, Member, StateEvent
from .transport import MatrixRequestError, MatrixTransport, encode_path_segment

logger = logging.getLogger(__name__)

MXC_PREFIX = "mxc://"


class RoomGraphClient:
    """Matrix client-server API accessor for the space graph.

    Lookups of a single node that the homeserver refuses (unknown room, not
    joined, missing event) come back as ``None``. Transport failures are
    raised as ``MatrixConnectionError`` so the caller can abort a crawl.
    """

    def __init__(self, transport: MatrixTransport):
        self._transport = transport

    @staticmethod
    def _room_path(room_id: str) -> str:
        return f"/_matrix/client/v3/rooms/{encode_path_segment(room_id)}"

    async def get_node_state(self, node_id: str) -> Optional[List[StateEvent]]:
        """Return the full current state of ``node_id``, or ``None`` if unavailable."""
        try:
            payload = await self._transport.get_json(f"{self._room_path(node_id)}/state")
        except MatrixRequestError as exc:
            logger.debug(f"State of {node_id} unavailable: {exc}")
            return None
        return [StateEvent.from_dict(event) for event in payload or []]

    async def get_single_state_event(
        self, node_id: str, event_type: str, state_key: str = ""
    ) -> Optional[Dict[str, Any]]:
        """Return the content of one state event, or ``None`` if it is absent."""
        path = (
            f"{self._room_path(node_id)}/state/"
            f"{encode_path_segment(event_type)}/{encode_path_segment(state_key)}"
        )
        try:
            return await self._transport.get_json(path)
        except MatrixRequestError as exc:
            logger.debug(f"{event_type} of {node_id} unavailable: {exc}")
            return None

    async def get_current_members(self, node_id: str) -> List[Member]:
        payload = await self._transport.get_json(f"{self._room_path(node_id)}/joined_members")
        joined = (payload or {}).get("joined") or {}
        return [
            Member(user_id=user_id, display_name=(profile or {}).get("display_name"))
            for user_id, profile in joined.items()
        ]

    async def get_hierarchy(
        self, node_id: str, max_depth: int = 10, page_limit: int = 50
    ) -> List[HierarchyRoom]:
        """Return the first page of the space hierarchy below ``node_id``.

        The first entry is normally ``node_id`` itself.
        """
        payload = await self._transport.get_json(
            f"/_matrix/client/v1/rooms/{encode_path_segment(node_id)}/hierarchy",
            params={"max_depth": max_depth, "limit": page_limit},
        )
        return [HierarchyRoom.from_dict(room) for room in (payload or {}).get("rooms", [])]

    async def get_immediate_children(self, node_id: str) -> List[HierarchyRoom]:
        """Return ``node_id`` and the rooms directly linked from it."""
        return await self.get_hierarchy(node_id, max_depth=1)

    def resolve_media_url(self, media_ref: Optional[str]) -> str:
        """Convert an ``mxc://server/media_id`` reference to a download URL."""
        if not media_ref or not media_ref.startswith(MXC_PREFIX):
            return ""
        server_and_id = media_ref[len(MXC_PREFIX):]
        server_name, _, media_id = server_and_id.partition("/")
        if not server_name or not media_id:
            return ""
        return (
            f"{self._transport.base_url}/_matrix/media/v3/download/"
            f"{encode_path_segment(server_name)}/{encode_path_segment(media_id)}"
        )
