"""
Schemas for the Watch Party Server

This module contains the action types and message constructors of the
watch party wire protocol.
"""

from .messages import (
    ACTION_SET_SOURCE,
    ACTION_PLAY,
    ACTION_PAUSE,
    ACTION_SEEK,
    ACTION_SYNC_REQUEST,
    PLAYBACK_ACTIONS,
    MESSAGE_SYNC_STATE,
    parse_action,
    create_sync_state_message,
)

__all__ = [
    "ACTION_SET_SOURCE",
    "ACTION_PLAY",
    "ACTION_PAUSE",
    "ACTION_SEEK",
    "ACTION_SYNC_REQUEST",
    "PLAYBACK_ACTIONS",
    "MESSAGE_SYNC_STATE",
    "parse_action",
    "create_sync_state_message",
]
