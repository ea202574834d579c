"""
Message Schema Definitions

Contains the action types of the watch party protocol and functions for
parsing inbound frames and creating outbound messages.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Inbound action types
ACTION_SET_SOURCE = "setSource"
ACTION_PLAY = "play"
ACTION_PAUSE = "pause"
ACTION_SEEK = "seek"
ACTION_SYNC_REQUEST = "syncRequest"

# Actions echoed to everyone but the sender
PLAYBACK_ACTIONS = (ACTION_PLAY, ACTION_PAUSE, ACTION_SEEK)

# Outbound message types
MESSAGE_SYNC_STATE = "syncState"


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_action(raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """
    Parse an inbound frame into an action.

    Args:
        raw: Text or binary frame received from a client

    Returns:
        dict: The decoded action, or None if the frame is not a JSON
        object with a string ``type``
    """
    try:
        action = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"Dropping undecodable frame: {e}")
        return None

    if not isinstance(action, dict) or not isinstance(action.get("type"), str):
        logger.debug("Dropping frame without an action type")
        return None

    return action


def create_sync_state_message(state) -> Dict[str, Any]:
    """
    Create a syncState message.

    Args:
        state: The PlaybackState to send

    Returns:
        dict: syncState message carrying the full state
    """
    return {
        "type": MESSAGE_SYNC_STATE,
        "state": state.to_dict(),
    }
