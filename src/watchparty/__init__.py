"""
Watch Party Server Package

This package provides the server side of a watch party: rooms sharing a
synchronized playback state over WebSocket connections.
"""

from .room_state import (
    RoomRegistry,
    Room,
    PlaybackState,
    apply_action,
    DEFAULT_ROOM_ID,
    ROOM_IDLE_TIMEOUT,
)
from .websocket_server import WebSocketServer, WATCHPARTY_PATH

__all__ = [
    "RoomRegistry",
    "Room",
    "PlaybackState",
    "apply_action",
    "DEFAULT_ROOM_ID",
    "ROOM_IDLE_TIMEOUT",
    "WebSocketServer",
    "WATCHPARTY_PATH",
]
