"""
Room State Management for the Watch Party Server

This module manages the in-memory state of watch party rooms. Each room
owns exactly one PlaybackState shared by every connection in the room.
All mutations happen on the asyncio event loop, so no locking is needed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .schemas import (
    ACTION_PAUSE,
    ACTION_PLAY,
    ACTION_SEEK,
    ACTION_SET_SOURCE,
)
from .utils.validation import coerce_source, coerce_time

logger = logging.getLogger(__name__)

# Configuration constants for room management
DEFAULT_ROOM_ID = "default"
ROOM_IDLE_TIMEOUT = 300  # seconds (5 minutes) an empty room is kept around


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class PlaybackState:
    """
    Shared playback state of a room.

    Attributes:
        playing: Whether playback should be running
        time: Nominal playback position in seconds
        updated_at: Epoch milliseconds of the last mutation
        src: Current media source, None when no source is set
    """

    playing: bool = False
    time: float = 0
    updated_at: int = 0
    src: Optional[str] = None

    def __post_init__(self):
        """Initialize the timestamp if not set."""
        if not self.updated_at:
            self.updated_at = _now_ms()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "playing": self.playing,
            "time": self.time,
            "updatedAt": self.updated_at,
            "src": self.src,
        }

    def touch(self):
        """Stamp the state as modified, never moving backwards in time."""
        self.updated_at = max(_now_ms(), self.updated_at)


@dataclass
class Room:
    """
    Represents a watch party room.

    Attributes:
        room_id: Opaque identifier of the room
        clients: Set of connections currently attached to the room
        state: The room's playback state
    """

    room_id: str
    clients: set = field(default_factory=set)
    state: PlaybackState = field(default_factory=PlaybackState)
    _expiry: Optional[asyncio.TimerHandle] = field(
        default=None, repr=False, compare=False
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert room to dictionary for diagnostics."""
        return {
            "room_id": self.room_id,
            "client_count": len(self.clients),
            "state": self.state.to_dict(),
        }

    def cancel_expiry(self):
        """Cancel the pending removal of this room, if any."""
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None


def apply_action(room: Room, action: Dict[str, Any]) -> bool:
    """
    Apply a client action to the room's playback state.

    The latest action processed wins. ``seek`` falls back to position 0
    when no usable time is given, while ``play`` and ``pause`` keep the
    current position in that case.

    Args:
        room: The room whose state is mutated
        action: Parsed action message with a ``type`` key

    Returns:
        bool: True if the state changed, False for unknown action types
    """
    state = room.state
    action_type = action.get("type")

    if action_type == ACTION_SET_SOURCE:
        state.src = coerce_source(action.get("src"))
        state.time = 0
        state.playing = False
    elif action_type == ACTION_SEEK:
        state.time = coerce_time(action.get("time")) or 0
    elif action_type in (ACTION_PLAY, ACTION_PAUSE):
        state.playing = action_type == ACTION_PLAY
        position = coerce_time(action.get("time"))
        if position is not None:
            state.time = position
    else:
        return False

    state.touch()
    return True


class RoomRegistry:
    """
    Owns every room of this server process.

    Rooms are created on first reference and removed once they have been
    empty for ``idle_timeout`` seconds. A client joining during that window
    cancels the pending removal.
    """

    def __init__(self, idle_timeout: float = ROOM_IDLE_TIMEOUT):
        """
        Initialize the registry.

        Args:
            idle_timeout: Seconds an empty room survives before removal
        """
        self.idle_timeout = idle_timeout
        self._rooms: Dict[str, Room] = {}

    def get_or_create(self, room_id: Optional[str]) -> Room:
        """
        Get the room with the given ID, creating it if unknown.

        Args:
            room_id: The room ID; falsy values select the default room

        Returns:
            Room: The existing or newly created room
        """
        room_id = room_id or DEFAULT_ROOM_ID
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id}")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        """Get a room by ID, or None if it does not exist."""
        return self._rooms.get(room_id)

    def get_room_count(self) -> int:
        """Get the number of rooms currently registered."""
        return len(self._rooms)

    def list_rooms(self) -> List[Dict[str, Any]]:
        """
        List all rooms.

        Returns:
            list: Room dictionaries with client count and playback state
        """
        return [room.to_dict() for room in self._rooms.values()]

    def add_client(self, room_id: Optional[str], client) -> Room:
        """
        Attach a connection to a room.

        Args:
            room_id: The room ID to join
            client: The connection handle

        Returns:
            Room: The room the client joined
        """
        room = self.get_or_create(room_id)
        room.cancel_expiry()
        room.clients.add(client)
        logger.debug(
            f"Room {room.room_id} now has {len(room.clients)} clients"
        )
        return room

    def remove_client(self, room: Room, client):
        """
        Detach a connection from its room.

        When the room becomes empty its removal is scheduled on the running
        event loop after ``idle_timeout`` seconds.

        Args:
            room: The room the client is attached to
            client: The connection handle
        """
        room.clients.discard(client)
        if room.clients:
            return

        room.cancel_expiry()
        loop = asyncio.get_running_loop()
        room._expiry = loop.call_later(
            self.idle_timeout, self.expire_room, room.room_id, room
        )
        logger.debug(
            f"Room {room.room_id} is empty, expiring in "
            f"{self.idle_timeout} seconds"
        )

    def expire_room(
        self, room_id: str, expected: Optional[Room] = None
    ) -> bool:
        """
        Remove a room if it is still empty.

        Args:
            room_id: The room ID
            expected: Optional room that scheduled the removal; a different
                room registered under the same ID is left alone

        Returns:
            bool: True if the room was removed, False otherwise
        """
        room = self._rooms.get(room_id)
        if room is None:
            return False
        if expected is not None and room is not expected:
            return False

        room._expiry = None
        if room.clients:
            return False

        del self._rooms[room_id]
        logger.info(f"Removed idle room {room_id}")
        return True

    def close(self):
        """Cancel every pending room expiry."""
        for room in self._rooms.values():
            room.cancel_expiry()
