"""
WebSocket server. Feeds connection events into the signaling relay.
"""

import asyncio
import logging
from functools import partial

import websockets
from websockets.exceptions import ConnectionClosed

from .relay import Relay
from .utils import peer_name

HEALTH_BODY = "WebRTC signaling server is running"

def health_check(connection, request, cors_origin=None):
    """
    Answer plain HTTP requests (platform health checks) without upgrading.

    :return: A 200 response, or None to continue the WebSocket handshake
    """
    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    logging.debug(f"Health check {request.path} from {peer_name(connection)}")
    response = connection.respond(200, HEALTH_BODY)
    if cors_origin:
        response.headers["Access-Control-Allow-Origin"] = cors_origin
    return response

async def ws_handler(websocket, relay: Relay):
    """
    Handle one WebSocket client for its whole lifetime.
    """
    await relay.on_connection_opened(websocket)
    logging.info(f"WS connection opened: {peer_name(websocket)}")
    try:
        async for frame in websocket:
            if isinstance(frame, bytes):
                logging.debug(f"Ignoring binary frame from {peer_name(websocket)}")
                continue
            await relay.on_message(websocket, frame)
    except ConnectionClosed:
        pass
    except Exception as e:
        logging.error(f"WS connection error {peer_name(websocket)}: {e}", exc_info=True)
    finally:
        await relay.on_connection_closed(websocket)
        logging.info(f"WS connection closed: {peer_name(websocket)}")

def create_server(relay: Relay, host, port, cors_origin=None):
    return websockets.serve(
        partial(ws_handler, relay=relay),
        host,
        port,
        process_request=partial(health_check, cors_origin=cors_origin),
    )

async def run_ws_server(relay: Relay, host, port, cors_origin=None):
    """
    Run the signaling server forever.
    """
    async with create_server(relay, host, port, cors_origin):
        logging.info(f"Signaling server listening on ws://{host}:{port}")
        await asyncio.Future()
