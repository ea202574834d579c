"""
Broadcast Utilities

Contains utility functions for fanning messages out to the connections
of a room.
"""

import json
import logging
from typing import Any, Dict

from websockets.asyncio.server import broadcast as websocket_broadcast
from websockets.protocol import State

logger = logging.getLogger(__name__)


def broadcast_to_room(room, message: Dict[str, Any], exclude=None) -> int:
    """
    Send a message to every open connection in a room.

    Sends are queued without waiting for them to complete, so a slow
    client never delays the others. Delivery is best-effort: websockets
    logs and skips a connection that fails, and nothing is retried.

    Args:
        room: The room whose clients receive the message
        message: The message to broadcast
        exclude: Optional connection to skip, usually the sender

    Returns:
        int: Number of connections the message was handed to
    """
    recipients = [
        client
        for client in room.clients
        if client is not exclude and client.state is State.OPEN
    ]
    if not recipients:
        return 0

    websocket_broadcast(recipients, json.dumps(message))
    logger.debug(
        f"Broadcasted {message.get('type')} to {len(recipients)} clients "
        f"in room {room.room_id}"
    )
    return len(recipients)
