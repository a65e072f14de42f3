"""
Helpers for working with transport connection handles.
"""

from websockets.protocol import State

def is_open(connection) -> bool:
    """
    Check whether a connection can accept a frame right now.

    :param connection: Connection handle given to us by the transport
    :return: True if the handle is in the OPEN state
    """
    return getattr(connection, "state", None) is State.OPEN

def peer_name(connection) -> str:
    address = getattr(connection, "remote_address", None)
    if not address:
        return "?"
    return f"{address[0]}:{address[1]}"
