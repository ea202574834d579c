#!/usr/bin/env python3
"""
Watch Party Server

Keeps video playback synchronized between browser clients sharing a room.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .room_state import RoomRegistry, ROOM_IDLE_TIMEOUT
from .websocket_server import WebSocketServer, WATCHPARTY_PATH

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = "public"


async def run_server(
    host: str,
    port: int,
    path: str = WATCHPARTY_PATH,
    static_dir: Optional[str] = None,
    idle_timeout: float = ROOM_IDLE_TIMEOUT,
):
    """
    Run the watch party server until cancelled.

    Args:
        host: Host address to bind to
        port: Port to listen on
        path: URL path accepting WebSocket connections
        static_dir: Optional directory of static assets to serve
        idle_timeout: Seconds an empty room is kept before removal
    """
    registry = RoomRegistry(idle_timeout=idle_timeout)
    ws_server = WebSocketServer(registry, host, port, path, static_dir)

    await ws_server.start()

    logger.info("Watch party server is ready")
    if static_dir:
        logger.info(f"Serving static files from {static_dir}")

    # Keep server running
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await ws_server.stop()
        registry.close()
        logger.info("Watch party server stopped")


def main():
    """Main entry point for the watch party server."""
    logger.info("Starting watch party server...")

    # Get configuration from environment or use defaults
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8080"))
    path = os.environ.get("WATCHPARTY_PATH", WATCHPARTY_PATH)
    idle_timeout = float(
        os.environ.get("ROOM_IDLE_TIMEOUT", str(ROOM_IDLE_TIMEOUT))
    )

    static_dir = os.environ.get("STATIC_DIR", DEFAULT_STATIC_DIR)
    if not Path(static_dir).is_dir():
        logger.warning(f"Static directory {static_dir} not found, disabled")
        static_dir = None

    try:
        asyncio.run(run_server(host, port, path, static_dir, idle_timeout))
    except KeyboardInterrupt:
        logger.info("Shutting down watch party server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
