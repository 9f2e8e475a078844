"""Typed views over the Matrix payloads the crawler and aggregator consume."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

META_EVENT_TYPE = "dev.medienhaus.meta"
NAME_EVENT_TYPE = "m.room.name"
JOIN_RULES_EVENT_TYPE = "m.room.join_rules"
AVATAR_EVENT_TYPE = "m.room.avatar"
SPACE_CHILD_EVENT_TYPE = "m.space.child"
MESSAGE_EVENT_TYPE = "m.room.message"


@dataclass
class StateEvent:
    """One entry of a room's current state."""
    type: str
    room_id: str
    state_key: str = ""
    content: Dict[str, Any] = field(default_factory=dict)
    sender: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateEvent":
        return cls(
            type=data.get("type", ""),
            room_id=data.get("room_id", ""),
            state_key=data.get("state_key", ""),
            content=data.get("content") or {},
            sender=data.get("sender"),
        )


@dataclass
class MetaDeclaration:
    """Content of a ``dev.medienhaus.meta`` state event."""
    type: Optional[str] = None
    published: Optional[str] = None
    deleted: bool = False
    credit: str = ""

    @classmethod
    def from_content(cls, content: Dict[str, Any]) -> "MetaDeclaration":
        # Values of the wrong JSON type read as absent.
        node_type = content.get("type")
        published = content.get("published")
        credit = content.get("credit")
        return cls(
            type=node_type if isinstance(node_type, str) else None,
            published=published if isinstance(published, str) and published else None,
            deleted=bool(content.get("deleted")),
            credit=credit if isinstance(credit, str) else "",
        )


@dataclass
class Member:
    user_id: str
    display_name: Optional[str] = None


@dataclass
class HierarchyRoom:
    """A room entry from the space hierarchy listing."""
    room_id: str
    name: str = ""
    topic: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HierarchyRoom":
        return cls(
            room_id=data.get("room_id", ""),
            name=data.get("name") or "",
            topic=data.get("topic") or None,
        )


@dataclass
class MessageEvent:
    """A timeline event as returned by the ``/messages`` endpoint."""
    event_id: str
    type: str
    body: Optional[str] = None
    formatted_body: Optional[str] = None
    url: Optional[str] = None
    msgtype: Optional[str] = None
    content: Dict[str, Any] = field(default_factory=dict)
    is_edit: bool = False
    is_redacted: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageEvent":
        content = data.get("content") or {}
        relates_to = content.get("m.relates_to") or {}
        unsigned = data.get("unsigned") or {}
        return cls(
            event_id=data.get("event_id", ""),
            type=data.get("type", ""),
            body=content.get("body"),
            formatted_body=content.get("formatted_body"),
            url=content.get("url"),
            msgtype=content.get("msgtype"),
            content=content,
            is_edit="m.new_content" in content or relates_to.get("rel_type") == "m.replace",
            is_redacted="redacted_because" in data or "redacted_because" in unsigned,
        )


def find_state_event(events: List[StateEvent], event_type: str) -> Optional[StateEvent]:
    """Return the first event of ``event_type`` or ``None``."""
    for event in events:
        if event.type == event_type:
            return event
    return None
