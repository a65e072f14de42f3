"""
Broadcast: fire-and-forget delivery of signaling messages to connections.
"""

import logging

from websockets.exceptions import ConnectionClosed

from . import messages
from .registry import Registry
from .utils import is_open, peer_name

async def send_to(connection, message: dict) -> bool:
    """
    Send one message to a connection if it is open.

    Frames for closed connections are dropped; send failures are logged and
    swallowed, never retried.

    :param connection: Destination connection handle
    :param message: Outbound message (dict, serialized to JSON)
    :return: True if the frame was handed to the transport
    """
    if not is_open(connection):
        logging.debug(f"Dropping {message.get('type')} for closed connection {peer_name(connection)}")
        return False
    try:
        await connection.send(messages.encode(message))
    except ConnectionClosed:
        logging.debug(f"Connection {peer_name(connection)} closed during send of {message.get('type')}")
        return False
    except Exception as exc:
        logging.error(f"Error sending {message.get('type')} to {peer_name(connection)}: {exc}")
        return False
    return True

def presence_update(registry: Registry) -> list:
    """
    Build the presence-list deliveries for every registered connection.

    :param registry: Presence registry
    :return: (connection, message) pairs, one per registered session
    """
    message = messages.users(registry.usernames())
    logging.debug(f"Presence list queued for {len(registry)} connections")
    return [(session.connection, message) for session in registry]
