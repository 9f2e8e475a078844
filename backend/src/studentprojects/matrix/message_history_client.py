"""Message history queries against ``/rooms/{room_id}/messages``."""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from .events import MessageEvent
from .transport import MatrixTransport, encode_path_segment

BACKWARDS = "b"
FORWARDS = "f"


class MessageHistoryClient:
    def __init__(self, transport: MatrixTransport):
        self._transport = transport

    async def fetch_recent_messages(
        self,
        room_id: str,
        *,
        limit: int,
        direction: str = BACKWARDS,
        event_types: Optional[Sequence[str]] = None,
    ) -> List[MessageEvent]:
        """Fetch up to ``limit`` timeline events of ``room_id``.

        Args:
            room_id: Room to read.
            limit: Maximum number of events to return.
            direction: ``"b"`` for newest first, ``"f"`` for oldest first.
            event_types: Restrict the result to these event types.

        Returns:
            Events in the order the homeserver returned them.
        """
        params = {"limit": limit, "dir": direction}
        if event_types:
            params["filter"] = json.dumps({"types": list(event_types)})

        payload = await self._transport.get_json(
            f"/_matrix/client/v3/rooms/{encode_path_segment(room_id)}/messages",
            params=params,
        )
        return [MessageEvent.from_dict(event) for event in (payload or {}).get("chunk", [])]
