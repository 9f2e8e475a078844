from .events import (
    HierarchyRoom,
    Member,
    MessageEvent,
    MetaDeclaration,
    StateEvent,
)
from .message_history_client import MessageHistoryClient
from .room_graph_client import RoomGraphClient
from .transport import (
    MatrixClientError,
    MatrixConnectionError,
    MatrixRequestError,
    MatrixTransport,
)

__all__ = [
    "HierarchyRoom",
    "MatrixClientError",
    "MatrixConnectionError",
    "MatrixRequestError",
    "MatrixTransport",
    "Member",
    "MessageEvent",
    "MessageHistoryClient",
    "MetaDeclaration",
    "RoomGraphClient",
    "StateEvent",
]
