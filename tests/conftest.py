"""
Pytest configuration and fixtures
"""
import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest


# Define paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
BACKEND_SRC = PROJECT_ROOT / "backend" / "src"

if str(BACKEND_SRC) not in sys.path:
    sys.path.insert(0, str(BACKEND_SRC))

from studentprojects.matrix import HierarchyRoom, Member, MessageEvent, RoomGraphClient, StateEvent
from studentprojects.matrix.transport import MatrixRequestError

HOMESERVER = "https://matrix.example.org"


class FakeRoomGraph:
    """In-memory space graph with the RoomGraphClient interface."""

    def __init__(self) -> None:
        self.spaces: Dict[str, Dict[str, Any]] = {}
        self.state_requests: List[str] = []
        self.member_errors: Dict[str, Exception] = {}
        self._media = RoomGraphClient(SimpleNamespace(base_url=HOMESERVER))

    def add_space(
        self,
        room_id: str,
        name: Optional[str],
        *,
        meta: Optional[Dict[str, Any]] = None,
        join_rule: Optional[str] = None,
        children: Optional[List[str]] = None,
        topic: Optional[str] = None,
        avatar_url: Optional[str] = None,
        members: Optional[Dict[str, Optional[str]]] = None,
        unreachable: bool = False,
    ) -> str:
        self.spaces[room_id] = {
            "name": name,
            "meta": meta,
            "join_rule": join_rule,
            "children": list(children or []),
            "topic": topic,
            "avatar_url": avatar_url,
            "members": dict(members or {}),
            "unreachable": unreachable,
        }
        return room_id

    def link(self, parent_id: str, child_id: str) -> None:
        self.spaces[parent_id]["children"].append(child_id)

    async def get_node_state(self, node_id: str) -> Optional[List[StateEvent]]:
        self.state_requests.append(node_id)
        space = self.spaces.get(node_id)
        if space is None or space["unreachable"]:
            return None
        events = []
        if space["meta"] is not None:
            events.append(StateEvent(type="dev.medienhaus.meta", room_id=node_id, content=space["meta"]))
        if space["name"] is not None:
            events.append(StateEvent(type="m.room.name", room_id=node_id, content={"name": space["name"]}))
        if space["join_rule"] is not None:
            events.append(
                StateEvent(type="m.room.join_rules", room_id=node_id, content={"join_rule": space["join_rule"]})
            )
        for child_id in space["children"]:
            events.append(
                StateEvent(
                    type="m.space.child",
                    room_id=node_id,
                    state_key=child_id,
                    content={"via": ["example.org"]},
                )
            )
        return events

    async def get_single_state_event(self, node_id: str, event_type: str, state_key: str = ""):
        space = self.spaces.get(node_id)
        if space is None:
            return None
        if event_type == "m.room.join_rules" and space["join_rule"] is not None:
            return {"join_rule": space["join_rule"]}
        if event_type == "m.room.avatar" and space["avatar_url"] is not None:
            return {"url": space["avatar_url"]}
        return None

    async def get_current_members(self, node_id: str) -> List[Member]:
        if node_id in self.member_errors:
            raise self.member_errors[node_id]
        return [
            Member(user_id=user_id, display_name=display_name)
            for user_id, display_name in self.spaces[node_id]["members"].items()
        ]

    async def get_hierarchy(self, node_id: str, max_depth: int = 10, page_limit: int = 50) -> List[HierarchyRoom]:
        if node_id not in self.spaces:
            raise MatrixRequestError("not found", status_code=404, errcode="M_NOT_FOUND")
        rooms: List[HierarchyRoom] = []
        seen = set()
        queue = [(node_id, 0)]
        while queue and len(rooms) < page_limit:
            room_id, depth = queue.pop(0)
            if room_id in seen or room_id not in self.spaces:
                continue
            seen.add(room_id)
            space = self.spaces[room_id]
            rooms.append(HierarchyRoom(room_id=room_id, name=space["name"] or "", topic=space["topic"]))
            if depth < max_depth:
                queue.extend((child_id, depth + 1) for child_id in space["children"])
        return rooms

    async def get_immediate_children(self, node_id: str) -> List[HierarchyRoom]:
        return await self.get_hierarchy(node_id, max_depth=1)

    def resolve_media_url(self, media_ref: Optional[str]) -> str:
        return self._media.resolve_media_url(media_ref)


class FakeMessageHistory:
    """Message store keyed by room id, newest message first."""

    def __init__(self) -> None:
        self.messages: Dict[str, List[MessageEvent]] = {}
        self.delays: Dict[str, float] = {}
        self.requests: List[Dict[str, Any]] = []
        self.errors: Dict[str, Exception] = {}

    def add_message(self, room_id: str, content: Dict[str, Any], event_type: str = "m.room.message", **extra) -> None:
        event = {
            "event_id": f"${room_id}-{len(self.messages.get(room_id, []))}",
            "type": event_type,
            "content": content,
            **extra,
        }
        # Newer messages go first, like a backwards /messages page.
        self.messages.setdefault(room_id, []).insert(0, MessageEvent.from_dict(event))

    async def fetch_recent_messages(self, room_id, *, limit, direction="b", event_types=None):
        self.requests.append({"room_id": room_id, "limit": limit, "direction": direction, "event_types": event_types})
        if room_id in self.delays:
            await asyncio.sleep(self.delays[room_id])
        if room_id in self.errors:
            raise self.errors[room_id]
        events = self.messages.get(room_id, [])
        if event_types:
            events = [event for event in events if event.type in event_types]
        return events[:limit]


@pytest.fixture
def room_graph() -> FakeRoomGraph:
    return FakeRoomGraph()


@pytest.fixture
def message_history() -> FakeMessageHistory:
    return FakeMessageHistory()

