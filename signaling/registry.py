"""
Presence registry: which username is online under which connection.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

@dataclass
class Session:
    username: str
    connection: Any  # owned by the transport, only referenced here

class Registry:
    """
    Mapping of username -> Session, in login order.

    Holds at most one session per username. Only the relay mutates it.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def connection_for(self, username: str):
        session = self._sessions.get(username)
        return session.connection if session else None

    def usernames(self) -> List[str]:
        return list(self._sessions)

    def bind(self, username: str, connection) -> Optional[Session]:
        """
        Bind a username to a connection.

        :param username: Trimmed, non-empty username
        :param connection: Connection that completed the login
        :return: The replaced session if another connection held the name, else None
        """
        previous = self._sessions.get(username)
        # assigning to an existing key keeps its place in the presence list
        self._sessions[username] = Session(username, connection)
        logging.debug(f"Registry: {username} bound ({len(self._sessions)} online)")
        if previous is not None and previous.connection is not connection:
            return previous
        return None

    def unbind(self, username: str, connection) -> bool:
        """
        Remove a username only if it is still bound to the given connection.

        :return: True if an entry was removed
        """
        session = self._sessions.get(username)
        if session is None or session.connection is not connection:
            return False
        del self._sessions[username]
        logging.debug(f"Registry: {username} removed ({len(self._sessions)} online)")
        return True
