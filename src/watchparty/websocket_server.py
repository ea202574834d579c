"""
WebSocket Server for the Watch Party

Handles WebSocket connections from browser clients, keeps their room's
playback state in sync, and answers the few plain HTTP requests the
server supports (health check and static assets).
"""

import asyncio
import json
import logging
import mimetypes
from http import HTTPStatus
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, unquote, urlsplit

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from .room_state import DEFAULT_ROOM_ID, Room, RoomRegistry, apply_action
from .schemas import (
    ACTION_SET_SOURCE,
    ACTION_SYNC_REQUEST,
    PLAYBACK_ACTIONS,
    create_sync_state_message,
    parse_action,
)
from .utils import broadcast_to_room

logger = logging.getLogger(__name__)

WATCHPARTY_PATH = "/watchparty"
HEALTH_PATH = "/healthz"
ROOM_QUERY_PARAM = "room"
INDEX_FILE = "index.html"


def get_room_id(path: str) -> str:
    """
    Extract the room ID from a request path.

    Args:
        path: Request target, including the query string

    Returns:
        str: The ``room`` query parameter, or the default room ID when it
        is missing or empty
    """
    query = parse_qs(urlsplit(path).query)
    values = query.get(ROOM_QUERY_PARAM)
    if values and values[0]:
        return values[0]
    return DEFAULT_ROOM_ID


class WebSocketServer:
    """
    WebSocket server for handling watch party connections.

    Each connection joins one room, receives the room's current state,
    and then streams playback actions that are applied to the room and
    echoed to the other members.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        host: str,
        port: int,
        path: str = WATCHPARTY_PATH,
        static_dir: Optional[str] = None,
    ):
        """
        Initialize the WebSocket server.

        Args:
            registry: The room registry instance
            host: Host address to bind to
            port: Port to listen on
            path: URL path accepting WebSocket connections
            static_dir: Optional directory of static assets to serve
        """
        self.registry = registry
        self.host = host
        self.port = port
        self.path = path
        self.static_dir = Path(static_dir).resolve() if static_dir else None
        self.server = None

    async def start(self):
        """Start the WebSocket server."""
        self.server = await serve(
            self.handle_client,
            self.host,
            self.port,
            process_request=self.process_request,
        )
        logger.info(
            f"WebSocket server started on ws://{self.host}:{self.port}"
            f"{self.path}"
        )

    async def stop(self):
        """Stop the WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("WebSocket server stopped")

    async def process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """
        Answer plain HTTP requests before the WebSocket handshake.

        Args:
            connection: The connection being opened
            request: The parsed HTTP request

        Returns:
            Response: An HTTP response, or None to continue the handshake
        """
        path = unquote(urlsplit(request.path).path)

        if path == self.path:
            return None
        if path == HEALTH_PATH:
            return connection.respond(HTTPStatus.OK, "ok\n")

        static_file = self._resolve_static(path)
        if static_file is None:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")

        loop = asyncio.get_running_loop()
        body = await loop.run_in_executor(None, static_file.read_bytes)
        content_type = (
            mimetypes.guess_type(static_file.name)[0]
            or "application/octet-stream"
        )
        headers = Headers(
            [
                ("Content-Type", content_type),
                ("Content-Length", str(len(body))),
                ("Connection", "close"),
            ]
        )
        return Response(HTTPStatus.OK.value, HTTPStatus.OK.phrase, headers, body)

    def _resolve_static(self, path: str) -> Optional[Path]:
        """
        Map a request path to a file inside the static directory.

        Args:
            path: Decoded URL path

        Returns:
            Path: The file to serve, or None if there is none
        """
        if self.static_dir is None:
            return None

        try:
            target = (self.static_dir / path.lstrip("/")).resolve()
        except (ValueError, OSError) as e:
            logger.warning(f"Refused static path {path!r}: {e}")
            return None
        if target != self.static_dir and self.static_dir not in target.parents:
            logger.warning(f"Refused static path outside root: {path}")
            return None
        try:
            if target.is_dir():
                target = target / INDEX_FILE
            if not target.is_file():
                return None
        except (ValueError, OSError):
            return None
        return target

    async def handle_client(self, websocket: ServerConnection):
        """
        Handle a client connection.

        Args:
            websocket: The WebSocket connection
        """
        client_id = id(websocket)
        room_id = get_room_id(websocket.request.path)

        # Join the room and hand over the current state
        room = self.registry.add_client(room_id, websocket)
        logger.info(f"Client {client_id} joined room {room.room_id}")

        try:
            await websocket.send(
                json.dumps(create_sync_state_message(room.state))
            )
            async for message in websocket:
                await self.process_message(websocket, room, message)
        except websockets.exceptions.ConnectionClosed:
            pass
        except Exception as e:
            logger.error(f"Error handling client {client_id}: {e}")
        finally:
            self.registry.remove_client(room, websocket)
            logger.info(f"Client {client_id} left room {room.room_id}")

    async def process_message(
        self, websocket: ServerConnection, room: Room, message
    ):
        """
        Process an incoming message from a client.

        Malformed frames and unknown action types are dropped without a
        reply.

        Args:
            websocket: The WebSocket connection
            room: The room the client belongs to
            message: The message frame (JSON)
        """
        try:
            action = parse_action(message)
            if action is None:
                return

            action_type = action["type"]

            if action_type == ACTION_SET_SOURCE:
                apply_action(room, action)
                # The sender also needs the canonical reset state
                broadcast_to_room(room, action)
            elif action_type in PLAYBACK_ACTIONS:
                apply_action(room, action)
                broadcast_to_room(room, action, exclude=websocket)
            elif action_type == ACTION_SYNC_REQUEST:
                await websocket.send(
                    json.dumps(create_sync_state_message(room.state))
                )
            else:
                logger.debug(f"Ignoring unknown action type: {action_type}")

        except websockets.exceptions.ConnectionClosed:
            raise
        except Exception as e:
            logger.error(
                f"Error processing message in room {room.room_id}: {e}"
            )
